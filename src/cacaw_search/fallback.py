"""Placeholder results used when every source comes back empty.

The table maps keywords (matched as substrings of the lower-cased query) to
a small set of stock photos. Categories are checked in order and the first
match wins; the generic category answers everything else. Output depends
only on the query text, so repeated calls return identical results.
"""

from dataclasses import dataclass

from cacaw_search.data import ImageResult, License, Query

SYNTHETIC_SOURCE = "synthetic"

_PHOTO_BASE = "https://images.unsplash.com"

_DEMO_LICENSE = License(kind="Demo License", allows_commercial=False, requires_attribution=False)


@dataclass(frozen=True)
class _Placeholder:
    photo: str
    label: str
    width: int
    height: int


@dataclass(frozen=True)
class _Category:
    name: str
    keywords: tuple[str, ...]
    placeholders: tuple[_Placeholder, ...]


_CATEGORIES: tuple[_Category, ...] = (
    _Category(
        "cards",
        ("pokemon", "card", "trading"),
        (
            _Placeholder("photo-1606107557195-0e29a4b5b4aa", "Trading Card Collection", 800, 600),
            _Placeholder("photo-1578662996442-48f60103fc96", "Collectible Card Game", 800, 800),
        ),
    ),
    _Category(
        "figures",
        ("figure", "toy", "funko", "action"),
        (
            _Placeholder("photo-1551698618-1dfe5d97d256", "Collectible Figure", 600, 800),
            _Placeholder("photo-1558618666-fcd25c85cd64", "Action Figure Collection", 800, 600),
        ),
    ),
    _Category(
        "comics",
        ("comic", "book", "manga"),
        (
            _Placeholder("photo-1544716278-ca5e3f4abd8c", "Comic Book Collection", 800, 600),
            _Placeholder("photo-1507003211169-0a1dd7228f2d", "Vintage Comic", 600, 800),
        ),
    ),
    _Category(
        "games",
        ("game", "nintendo", "playstation", "xbox"),
        (
            _Placeholder("photo-1493711662062-fa541adb3fc8", "Video Game Collection", 800, 600),
            _Placeholder("photo-1511512578047-dfb367046420", "Gaming Console", 800, 600),
        ),
    ),
    _Category(
        "plush",
        ("plush", "stuffed", "teddy", "bear"),
        (
            _Placeholder("photo-1530103862676-de8c9debad1d", "Plushie Collection", 600, 800),
            _Placeholder("photo-1558618666-fcd25c85cd64", "Stuffed Animal", 800, 600),
        ),
    ),
    _Category(
        "pokemon",
        ("charizard", "pikachu"),
        (_Placeholder("photo-1606107557195-0e29a4b5b4aa", "Pokemon Trading Card", 800, 600),),
    ),
    _Category(
        "nintendo",
        ("mario", "zelda"),
        (_Placeholder("photo-1493711662062-fa541adb3fc8", "Nintendo Game", 800, 600),),
    ),
    _Category(
        "superheroes",
        ("marvel", "dc", "superhero"),
        (_Placeholder("photo-1544716278-ca5e3f4abd8c", "Superhero Comic", 800, 600),),
    ),
)

_GENERIC = _Category(
    "generic",
    (),
    (
        _Placeholder("photo-1578662996442-48f60103fc96", "Collectible Item", 800, 800),
        _Placeholder("photo-1551698618-1dfe5d97d256", "Collection Display", 600, 800),
    ),
)


def match_category(text: str) -> str:
    """Name of the first category whose keywords occur in ``text``."""
    return _find_category(text.lower()).name


def _find_category(lowered: str) -> _Category:
    for category in _CATEGORIES:
        if any(keyword in lowered for keyword in category.keywords):
            return category
    return _GENERIC


def synthesize_results(query: Query) -> list[ImageResult]:
    """Deterministic placeholder results for ``query``.

    Every result carries ``source_name == SYNTHETIC_SOURCE``.
    """
    text = query.normalized_text()
    category = _find_category(text.lower())
    return [
        ImageResult(
            id=f"{SYNTHETIC_SOURCE}-{i}",
            source_url=f"{_PHOTO_BASE}/{p.photo}?w=800",
            thumbnail_url=f"{_PHOTO_BASE}/{p.photo}?w=200",
            title=f"{text} - {p.label}",
            width=p.width,
            height=p.height,
            format="jpeg",
            source_name=SYNTHETIC_SOURCE,
            origin_url=f"{_PHOTO_BASE}/{p.photo}",
            attribution_text="Placeholder image from Unsplash",
            license=_DEMO_LICENSE,
            download_url=f"{_PHOTO_BASE}/{p.photo}?w=800",
            tags=(category.name,),
        )
        for i, p in enumerate(category.placeholders)
    ]
