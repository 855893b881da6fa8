"""Tests for GoogleImageAdapter."""

import pytest

from cacaw_search.data import ColorKind, ImageKind, Query, SafetyLevel, UsageRights
from cacaw_search.search.google import GoogleImageAdapter


class TestGoogleImageAdapter:
    @pytest.fixture
    def mock_response_data(self) -> dict:
        """Sample Custom Search response in image mode."""
        return {
            "searchInformation": {"totalResults": "125000"},
            "queries": {"nextPage": [{"startIndex": 11}]},
            "items": [
                {
                    "title": "Charizard Base Set Holo Rare Card Near Mint",
                    "link": "https://www.cardshop.example/img/charizard.png",
                    "mime": "image/png",
                    "snippet": "Charizard 4/102",
                    "image": {
                        "contextLink": "https://www.cardshop.example/charizard",
                        "width": 600,
                        "height": 825,
                        "byteSize": 512000,
                        "thumbnailLink": "https://encrypted-tbn0.gstatic.com/images?q=abc",
                    },
                }
            ],
        }

    @pytest.fixture
    def adapter(self) -> GoogleImageAdapter:
        return GoogleImageAdapter(api_key="test-key", search_engine_id="cx-123")

    def test_init_requires_both_credentials(self) -> None:
        with pytest.raises(ValueError, match="search engine id required"):
            GoogleImageAdapter(api_key="only-key")

    def test_init_uses_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_API_KEY", "env-key")
        monkeypatch.setenv("GOOGLE_SEARCH_ENGINE_ID", "env-cx")
        adapter = GoogleImageAdapter()
        assert adapter._api_key == "env-key"
        assert adapter._search_engine_id == "env-cx"

    async def test_request_params(
        self, adapter: GoogleImageAdapter, fake_http, mock_response_data: dict
    ) -> None:
        fake_http.payload = mock_response_data
        query = Query(
            text="charizard",
            desired_count=50,
            image_kind=ImageKind.ILLUSTRATION,
            color_kind=ColorKind.GRAYSCALE,
            usage_rights=UsageRights.COMMERCIAL,
            safety=SafetyLevel.MODERATE,
            min_width=1100,
        )

        await adapter.search(query)

        params = fake_http.last.params
        assert params["key"] == "test-key"
        assert params["cx"] == "cx-123"
        assert params["searchType"] == "image"
        assert params["num"] == 10
        assert params["safe"] == "active"
        assert params["imgType"] == "clipart"
        assert params["imgColorType"] == "gray"
        assert params["imgSize"] == "xlarge"
        assert params["rights"] == "cc_publicdomain|cc_attribute|cc_sharealike"

    async def test_safe_off(
        self, adapter: GoogleImageAdapter, fake_http, mock_response_data: dict
    ) -> None:
        fake_http.payload = mock_response_data
        await adapter.search(Query(text="charizard", safety=SafetyLevel.OFF))
        assert fake_http.last.params["safe"] == "off"
        assert "rights" not in fake_http.last.params

    async def test_parses_items(
        self, adapter: GoogleImageAdapter, fake_http, mock_response_data: dict
    ) -> None:
        fake_http.payload = mock_response_data

        response = await adapter.search(Query(text="charizard"))

        assert response.total_count == 125000
        assert response.next_page_token == "11"
        item = response.results[0]
        assert item.format == "png"
        assert item.width == 600
        assert item.origin_url == "https://www.cardshop.example/charizard"
        assert item.attribution_text == "Image from cardshop.example"
        assert item.tags == ("charizard", "base", "set", "holo", "rare")
        assert item.license is not None
        assert item.license.allows_commercial is False

    async def test_ids_are_stable(
        self, adapter: GoogleImageAdapter, fake_http, mock_response_data: dict
    ) -> None:
        fake_http.payload = mock_response_data
        first = await adapter.search(Query(text="charizard"))
        second = await adapter.search(Query(text="charizard"))
        assert first.results[0].id == second.results[0].id

    async def test_no_items_means_no_results(
        self, adapter: GoogleImageAdapter, fake_http
    ) -> None:
        fake_http.payload = {"searchInformation": {"totalResults": "0"}}
        response = await adapter.search(Query(text="zzzz"))
        assert response.results == ()
        assert response.total_count == 0
