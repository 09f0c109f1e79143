#!/usr/bin/env python3
"""
Command line for building a passage table and answering questions from it.

Usage:
    ragqa build files/ df.csv
    ragqa query df.csv "Why were the gaps in the record irrelevant?"
    ragqa search df.csv "treatment delay" --k 5
    ragqa --config ragqa.yaml --verbose query df.csv "..." --show-context

Environment:
    OPENAI_API_KEY / OPENAI_KEY   API key for the openai provider
    RAGQA_*                       Overrides for individual settings (see config_loader)

A .env file in the working directory is loaded before the configuration.
"""

import argparse
import logging
import sys
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from ..core.exceptions import RagError
from ..core.logging import configure_logging
from ..core.types import RagConfig
from ..config.config_loader import load_config, validate_config
from ..runners.pipeline import RagPipeline
from ..storage.table_store import load_store


logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def apply_overrides(config: RagConfig, args: argparse.Namespace) -> RagConfig:
    """Apply command-line flags on top of the loaded configuration."""
    if args.embedding_model:
        config.embedding_model = args.embedding_model
    if args.completion_model:
        config.completion_model = args.completion_model
    if args.token_budget is not None:
        config.token_budget = args.token_budget
    if args.min_length is not None:
        config.min_passage_length = args.min_length
    if args.batch_size is not None:
        config.batch_size = args.batch_size

    validate_config(config)
    return config


def cmd_build(args: argparse.Namespace, pipeline: RagPipeline) -> int:
    """Ingest, segment and embed a directory, then save the table."""
    result = pipeline.build_to_table(args.source_dir, args.table_path)

    print(f"\nBuild complete:")
    print(f"  Run ID: {result.run_id}")
    print(f"  Documents read: {result.document_count}")
    print(f"  Passages embedded: {result.passage_count}")
    print(f"  Dimension: {result.store.dimension}")
    print(f"  Table: {result.table_path}")
    print(f"  Manifest: {result.manifest_path}")
    print(f"  Duration: {result.duration_seconds}s")
    return 0


def cmd_query(args: argparse.Namespace, pipeline: RagPipeline) -> int:
    """Answer a question from a saved table."""
    answer = pipeline.ask_from_table(args.table_path, args.question)

    if args.show_context:
        print("=" * 60)
        print(answer.context.message)
        print("=" * 60)
        print(
            f"{len(answer.context.passages)} of {answer.context.candidates} passages, "
            f"{answer.context.token_count}/{answer.context.token_budget} tokens\n"
        )

    print(answer.text)
    return 0


def cmd_search(args: argparse.Namespace, pipeline: RagPipeline) -> int:
    """Print the passages most related to a query."""
    store = load_store(args.table_path)
    results = pipeline.search(args.query, store, k=args.k)

    if not results:
        print("No passages in table.")
        return 0

    for passage in results:
        preview = passage.text[:200].replace("\n", " ")
        print(f"[{passage.rank}] score={passage.score:.4f} {preview}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ragqa",
        description="Retrieval-augmented question answering over a directory of documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--structured-logs", action="store_true", help="Emit JSON-structured log lines"
    )
    parser.add_argument("--embedding-model", help="Embedding model identifier")
    parser.add_argument("--completion-model", help="Completion model identifier")
    parser.add_argument("--token-budget", type=int, help="Token budget for the assembled prompt")
    parser.add_argument(
        "--min-length", type=int, help="Passages must be longer than this many characters"
    )
    parser.add_argument("--batch-size", type=int, help="Passages per embedding request")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    build_cmd = subparsers.add_parser(
        "build", help="Embed a directory of documents into a table"
    )
    build_cmd.add_argument("source_dir", help="Directory of UTF-8 text files")
    build_cmd.add_argument("table_path", help="Output CSV table")
    build_cmd.set_defaults(func=cmd_build)

    query_parser = subparsers.add_parser("query", help="Answer a question from a table")
    query_parser.add_argument("table_path", help="CSV table produced by 'build'")
    query_parser.add_argument("question", help="Question to answer")
    query_parser.add_argument(
        "--show-context", action="store_true", help="Also print the assembled prompt"
    )
    query_parser.set_defaults(func=cmd_query)

    search_parser = subparsers.add_parser(
        "search", help="Show the passages most related to a query"
    )
    search_parser.add_argument("table_path", help="CSV table produced by 'build'")
    search_parser.add_argument("query", help="Query text")
    search_parser.add_argument(
        "--k", type=positive_int, default=5, help="Number of results (default: 5)"
    )
    search_parser.set_defaults(func=cmd_search)

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.structured_logs,
    )

    if not args.command:
        parser.print_help()
        return 1

    load_dotenv(find_dotenv(usecwd=True))

    try:
        config = apply_overrides(load_config(args.config), args)
        logger.debug(f"Configuration: {config.to_dict()}")
        return args.func(args, RagPipeline(config))
    except RagError as e:
        logger.error(f"{e.stage} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
