"""CLI entry point for brainlib."""

import argparse
import logging
import sys
import threading
import time
from dataclasses import replace
from pathlib import Path
from types import TracebackType
from typing import Literal, Optional, cast

from brainlib.config import Settings
from brainlib.errors import ConfigError
from brainlib.index import LiveIndex
from brainlib.server import DocumentToolbox, create_mcp_server

logger = logging.getLogger(__name__)

# Seconds to wait before restarting a crashed MCP transport
RESTART_DELAY = 1.0


def configure_logging(level: str) -> None:
    """Send logs to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(name)s] %(message)s",
        stream=sys.stderr,
    )


def install_safety_net() -> None:
    """Log uncaught exceptions instead of dying silently.

    Covers the main thread and background threads (watch observer, workers).
    """

    def log_uncaught(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_tb: Optional[TracebackType],
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))

    def log_uncaught_thread(args: threading.ExceptHookArgs) -> None:
        if args.exc_value is None:
            return
        name = args.thread.name if args.thread else "unknown"
        logger.critical(
            f"Uncaught exception in thread {name}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = log_uncaught
    threading.excepthook = log_uncaught_thread


def build_index(settings: Settings, watch: bool = False) -> LiveIndex:
    """Create an index for the configured documents folder.

    Args:
        settings: Resolved settings
        watch: Keep the index in sync with filesystem changes
    """
    change_source = None
    if watch:
        # Import here to avoid starting observers for one-shot commands
        from brainlib.watchers import WatchdogChangeSource

        change_source = WatchdogChangeSource()

    return LiveIndex(
        settings.documents_dir,
        top_k=settings.top_k,
        change_source=change_source,
        workers=settings.workers,
    )


def serve(settings: Settings, transport: str = "stdio") -> None:
    """Index the documents folder, watch it, and serve MCP until exit.

    Args:
        settings: Resolved settings
        transport: Transport protocol (stdio or sse)
    """
    with build_index(settings, watch=True) as index:
        index.initialize()
        logger.info(f"Serving {settings.documents_dir} via {transport}")
        mcp = create_mcp_server(index)
        while True:
            try:
                mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))
                break
            except Exception:
                logger.exception(f"MCP server stopped unexpectedly, restarting in {RESTART_DELAY}s")
                time.sleep(RESTART_DELAY)


def search(settings: Settings, query: str) -> None:
    """Index the documents folder once and print the answer to one query.

    Args:
        settings: Resolved settings
        query: Free-text query
    """
    with build_index(settings) as index:
        index.initialize()
        print(DocumentToolbox(index).search_documents(query))


def info(settings: Settings) -> None:
    """Show which files are indexed and how many chunks each produced.

    Args:
        settings: Resolved settings
    """
    with build_index(settings) as index:
        index.initialize()
        sources = index.sources()

    print(f"Documents: {settings.documents_dir}")
    print(f"  Files: {len(sources)}")
    print(f"  Chunks: {sum(sources.values())}")
    print(f"")
    for source, count in sources.items():
        print(f"  {source:<50} {count:>5} chunks")


def deck(settings: Settings) -> None:
    """Launch the Library Deck TUI."""
    from brainlib.deck import main as deck_main

    deck_main(settings)


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="brainlib",
        description="brainlib - keyword search over a live folder of personal documents",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    documents_parent = argparse.ArgumentParser(add_help=False)
    documents_parent.add_argument(
        "-d",
        "--documents",
        help="Documents folder (default: $BRAINLIB_DOCUMENTS_DIR or ./documents)",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        parents=[documents_parent],
        help="Index and watch a folder, serving search over MCP",
    )
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    # search command
    search_parser = subparsers.add_parser(
        "search",
        parents=[documents_parent],
        help="Run a single query and print the results",
    )
    search_parser.add_argument("query", help="Free-text query")
    search_parser.add_argument(
        "-k",
        "--top-k",
        type=int,
        help="Maximum number of results (default: $BRAINLIB_TOP_K or 3)",
    )

    # info command
    subparsers.add_parser(
        "info",
        parents=[documents_parent],
        help="Show indexed files and chunk counts",
    )

    # deck command
    subparsers.add_parser(
        "deck",
        parents=[documents_parent],
        help="Launch the Library Deck TUI",
    )

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        parser.error(str(e))

    if args.documents:
        settings = replace(settings, documents_dir=Path(args.documents))
    if getattr(args, "top_k", None) is not None:
        if args.top_k < 1:
            parser.error("--top-k must be >= 1")
        settings = replace(settings, top_k=args.top_k)

    configure_logging(settings.log_level)
    install_safety_net()

    if args.command == "serve":
        serve(settings, args.transport)
    elif args.command == "search":
        search(settings, args.query)
    elif args.command == "info":
        info(settings)
    elif args.command == "deck":
        deck(settings)


if __name__ == "__main__":
    main()
