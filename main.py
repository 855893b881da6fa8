#!/usr/bin/env python
"""CLI for cacaw multi-source collectible image search."""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from pydantic import BaseModel, field_validator

from cacaw_search.config import create_from_config, get_default_config_path, load_config
from cacaw_search.data import SearchOptions
from cacaw_search.settings import JsonFileSettingsStore

logger = logging.getLogger(__name__)


class CLIArgs(BaseModel):
    """Validated CLI arguments."""

    query: str
    item_type: str | None = None
    series: str | None = None
    config: Path
    settings: Path | None = None
    providers: frozenset[str] | None = None
    fallback: bool = True
    log: bool = False
    log_dir: str = "logs"

    @field_validator("query")
    @classmethod
    def query_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Search query is required")
        return v

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v


def override_options(args: CLIArgs, defaults: SearchOptions) -> SearchOptions | None:
    """Apply CLI overrides to the configured defaults; None when there are none."""
    if args.providers is None and args.fallback:
        return None
    return replace(
        defaults,
        providers=args.providers,
        fallback_to_synthetic=args.fallback and defaults.fallback_to_synthetic,
    )


async def run(args: CLIArgs) -> None:
    """Run one aggregated search with the given configuration.

    Args:
        args: Validated CLI arguments.
    """
    config = load_config(args.config)
    settings = JsonFileSettingsStore(args.settings) if args.settings else None
    aggregator, run_logger = create_from_config(
        config,
        settings,
        log_override=args.log if args.log else None,
        log_dir_override=args.log_dir if args.log_dir != "logs" else None,
    )
    options = override_options(args, aggregator.default_options)

    logger.info(f"Searching for: {args.query}")
    logger.info(f"Config: {args.config}")
    logger.info(f"Providers: {aggregator.list_available_providers()}")

    async with aggregator:
        response = await aggregator.search_product_images(
            args.query,
            item_type=args.item_type,
            series_hint=args.series,
            options=options,
        )

        print(f"\nFound {response.total_count} images in {response.elapsed_millis}ms:\n")
        for i, result in enumerate(response.results, 1):
            logger.info(f"{i}. {result.title}")
            logger.info(f"   Source: {result.source_name} ({result.width}x{result.height})")
            logger.info(f"   URL: {result.source_url}")
            if result.attribution_text:
                logger.info(f"   Credit: {result.attribution_text}")

        logger.info("\n--- Sources ---")
        logger.info(f"Contributing: {sorted(response.contributing_sources)}")
        for name, error in sorted(response.per_source_errors.items()):
            logger.info(f"{name}: {error}")

        stats = aggregator.get_cache_statistics()
        logger.info(
            f"Cache: {stats.size}/{stats.max_size} entries, ~{stats.approx_memory_bytes} bytes"
        )

    if run_logger and run_logger.last_log_path:
        logger.info(f"\nRun log written to: {run_logger.last_log_path}")


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Find product images for collectible items.")
    parser.add_argument(
        "query",
        help="Item name to search for",
    )
    parser.add_argument(
        "--item-type",
        default=None,
        help="Item type appended to the query (e.g. 'trading card')",
    )
    parser.add_argument(
        "--series",
        default=None,
        help="Series or franchise appended to the query",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: bundled configs/default.yaml)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="JSON settings file holding provider API keys",
    )
    parser.add_argument(
        "--providers",
        default=None,
        help="Comma-separated provider names to search (default: all configured)",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        default=False,
        help="Return nothing instead of placeholder images when every provider fails",
    )
    parser.add_argument(
        "--log",
        action="store_true",
        default=False,
        help="Write a JSON record of each search's stages",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)",
    )

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()
    config_path: Path = ns.config if ns.config else get_default_config_path()
    providers = (
        frozenset(p.strip() for p in ns.providers.split(",") if p.strip())
        if ns.providers
        else None
    )

    try:
        args = CLIArgs(
            query=ns.query,
            item_type=ns.item_type,
            series=ns.series,
            config=config_path,
            settings=ns.settings,
            providers=providers,
            fallback=not ns.no_fallback,
            log=ns.log,
            log_dir=ns.log_dir,
        )
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
