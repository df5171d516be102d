"""Application entrypoint for newsmerge.

Modes:
1) default: fetch configured feeds, merge items into the story store, sweep expired stories
2) --clusters: print a digest of clustered stories grouped by recency
3) --sweep-only: remove stories past the retention horizon
"""

from __future__ import annotations

import argparse
from pathlib import Path

from dotenv import load_dotenv

from .errors import NewsmergeError
from .orchestrator import Orchestrator
from .output.digest_formatter import digest_to_json, format_digest
from .processors.vocabulary import DEFAULT_VOCABULARY
from .store import InMemoryStoryStore, JsonStoryStore
from .utils.config_loader import ConfigError, load_feeds_config, load_vocabulary
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import Settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="newsmerge – merge republished news into stories and cluster them by event"
    )
    parser.add_argument(
        "--config",
        default="config/feeds.yaml",
        help="Path to feeds configuration file (YAML)",
    )
    parser.add_argument(
        "--vocabulary",
        default=None,
        help="Optional YAML file overriding stop words, entities and verified sources",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Directory of the JSON story store (defaults to NEWSMERGE_STORE_PATH)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use a throwaway in-memory store instead of the JSON store",
    )
    parser.add_argument(
        "--clusters",
        action="store_true",
        help="Print clustered stories grouped by recency and exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="With --clusters, print JSON instead of Markdown",
    )
    parser.add_argument(
        "--sweep-only",
        action="store_true",
        help="Only delete stories past the retention horizon and exit",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Similarity threshold for clustering (defaults to NEWSMERGE_SIMILARITY_THRESHOLD)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (defaults to LOG_LEVEL, then INFO)",
    )
    parser.add_argument(
        "--max-items-per-feed",
        type=int,
        default=None,
        help="Limit number of items ingested per feed (for quick runs)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    configure_logging(level=args.log_level)
    logger = get_logger("nm.agent")
    settings = Settings()

    try:
        vocab_path = args.vocabulary or settings.vocabulary_path
        vocab = load_vocabulary(vocab_path) if vocab_path else DEFAULT_VOCABULARY
        store = InMemoryStoryStore() if args.dry_run else JsonStoryStore(Path(args.store or settings.store_path))
    except (ConfigError, NewsmergeError) as exc:
        logger.exception("Failed to initialise: %s", exc)
        return 1

    orch = Orchestrator(
        store,
        vocab=vocab,
        retention_hours=settings.retention_hours,
        similarity_threshold=args.threshold if args.threshold is not None else settings.similarity_threshold,
        max_items_per_feed=args.max_items_per_feed,
    )

    if args.sweep_only:
        orch.sweep()
        return 0

    if args.clusters:
        blocks = orch.time_blocks()
        print(digest_to_json(blocks) if args.json else format_digest(blocks))
        return 0

    config_path = Path(args.config)
    logger.info("Loading feeds configuration from %s", config_path)
    try:
        feeds = load_feeds_config(config_path)
    except ConfigError as exc:
        logger.exception("Failed to load configuration: %s", exc)
        return 1
    logger.info("Loaded %d feed(s)", len(feeds))

    report, _deleted = orch.run(feeds)
    logger.info("%s", report.to_markdown())
    return 0 if report.errors == 0 else 2


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
