import argparse
import json
import sys
from pathlib import Path
from typing import Any, Mapping

from chunking import CHUNK_OVERLAP, CHUNK_SIZE, STRATEGIES, ChunkConfig, chunk_pages
from site_spider import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    CrawlConfig,
    SiteCrawler,
    SpiderEventCallback,
)


def seed_documents(
    start_url: str,
    max_depth: int | None = None,
    max_pages: int | None = None,
    splitter_options: Mapping[str, Any] | None = None,
    crawler: SiteCrawler | None = None,
    event_callback: SpiderEventCallback | None = None,
) -> list[dict[str, str]]:
    """Crawl ``start_url`` and return its chunked text as ``{"url", "content"}`` dicts.

    Records come out in crawl-visitation order, each page's chunks in
    sequence. Errors other than per-page fetch failures propagate.
    """
    chunk_config = ChunkConfig.from_options(splitter_options)
    if crawler is None:
        crawl_config = CrawlConfig(
            max_depth=DEFAULT_MAX_DEPTH if max_depth is None else int(max_depth),
            max_pages=DEFAULT_MAX_PAGES if max_pages is None else int(max_pages),
        )
        crawler = SiteCrawler(crawl_config, event_callback=event_callback)

    pages = crawler.crawl(start_url)
    return [record.to_dict() for record in chunk_pages(pages, chunk_config)]


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crawl a site and emit overlapping text chunks as JSON.")
    parser.add_argument("url", help="Seed URL to begin crawling.")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="Maximum link hops from the seed.")
    parser.add_argument("--max-pages", type=int, default=DEFAULT_MAX_PAGES, help="Maximum pages to visit.")
    parser.add_argument("--chunk-size", type=int, default=CHUNK_SIZE)
    parser.add_argument("--chunk-overlap", type=int, default=CHUNK_OVERLAP)
    parser.add_argument("--strategy", choices=STRATEGIES, default="recursive")
    parser.add_argument(
        "--tokens",
        action="store_true",
        help="Measure chunk size and overlap in tokens instead of characters.",
    )
    parser.add_argument("--output", default="", help="Write documents to this file instead of stdout.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    splitter_options = {
        "chunkSize": args.chunk_size,
        "chunkOverlap": args.chunk_overlap,
        "strategy": args.strategy,
        "lengthUnit": "tokens" if args.tokens else "characters",
    }

    # progress events go to stderr so stdout stays valid JSON
    def _log_event(event: dict) -> None:
        print(event["message"], file=sys.stderr)

    try:
        documents = seed_documents(
            args.url,
            max_depth=args.max_depth,
            max_pages=args.max_pages,
            splitter_options=splitter_options,
            event_callback=_log_event,
        )
    except ValueError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 2

    payload = json.dumps(documents, ensure_ascii=False, indent=2)
    if args.output:
        out_path = Path(args.output).expanduser()
        out_path.write_text(payload, encoding="utf-8")
        print(f"Wrote {len(documents)} documents to {out_path}", file=sys.stderr)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
