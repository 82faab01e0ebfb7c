"""CLI for extracting categorised proxy lists from an IP2Proxy binary database."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from tqdm import tqdm

from proxylists.extraction import ChunkedAggregationPipeline, ResultAssembler, write_document
from proxylists.extraction.assembler import ProxyListDocument
from proxylists.settings import ExtractionSettings, load_extraction_settings
from proxylists.status_emitter import StatusEmitter

logger = logging.getLogger(__name__)


def extract_proxy_lists(
    database: Path,
    output: Path,
    settings: ExtractionSettings,
    progress: bool = False,
    status_dir: Optional[Path] = None,
) -> ProxyListDocument:
    """Extract every bucket from ``database`` and write the JSON document to ``output``.

    Args:
        database: IP2Proxy BIN file to read
        output: Destination of the JSON document
        settings: Extraction settings (chunk size, workers, executor, timeouts)
        progress: Show a progress bar over processed chunks
        status_dir: Directory for status JSON files, disabled when None

    Returns:
        The document that was written

    Example:
        >>> from proxylists.settings import load_extraction_settings
        >>> document = extract_proxy_lists(
        ...     Path("IP2PROXY-LITE-PX10.BIN"),
        ...     Path("lists.json"),
        ...     load_extraction_settings(),
        ... )
        >>> print(sorted(document.lists))
    """
    emitter = StatusEmitter("extract", status_dir=status_dir) if status_dir else None
    progress_bar: Optional[tqdm] = None

    def on_progress(completed: int, total: int) -> None:
        nonlocal progress_bar
        if not progress:
            return
        if progress_bar is None:
            progress_bar = tqdm(total=total, desc="Processing chunks", unit="chunk")
        progress_bar.update(completed - progress_bar.n)

    pipeline = ChunkedAggregationPipeline(
        database,
        settings,
        progress_callback=on_progress,
        status_emitter=emitter,
    )
    try:
        lists = pipeline.run()
    finally:
        if progress_bar is not None:
            progress_bar.close()

    document = ResultAssembler().assemble(lists)
    write_document(document, output)
    return document


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for proxy list extraction."""
    parser = argparse.ArgumentParser(
        description="Extract deduplicated, sorted proxy and threat lists from an IP2Proxy BIN database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract with defaults (process pool, 10000-row chunks)
  proxylists-extract IP2PROXY-LITE-PX10.BIN --progress

  # Thread pool with a custom output path and a one hour limit
  proxylists-extract IP2PROXY-LITE-PX10.BIN -o /srv/lists.json --executor thread --timeout 3600

  # Publish status files for monitors
  proxylists-extract IP2PROXY-LITE-PX10.BIN --status-dir /var/lib/proxylists/status
        """,
    )
    parser.add_argument("database", type=Path, help="Path to the IP2Proxy BIN database")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("lists.json"),
        help="Output JSON file (default: lists.json)",
    )
    parser.add_argument("--chunk-size", type=int, default=None, help="Rows per chunk (default: 10000)")
    parser.add_argument("--workers", type=int, default=None, help="Worker pool size (default: CPU count)")
    parser.add_argument(
        "--executor",
        choices=["process", "thread"],
        default=None,
        help="Worker pool type (default: process)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Abort after this many seconds")
    parser.add_argument("--status-dir", type=Path, default=None, help="Write status JSON files here")
    parser.add_argument("--progress", action="store_true", help="Show progress bar")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        settings = load_extraction_settings(
            {
                "chunk_size": args.chunk_size,
                "max_workers": args.workers,
                "executor": args.executor,
                "timeout_seconds": args.timeout,
            }
        )
        document = extract_proxy_lists(
            database=args.database,
            output=args.output,
            settings=settings,
            progress=args.progress,
            status_dir=args.status_dir,
        )
        print(f"\nSaved {args.output} with {len(document.lists)} lists")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
