"""Command-line interface for the YouTube knowledge base pipeline."""

import argparse
import asyncio

from src.utils.logging import get_logger

from .config import get_config
from .errors import KnowledgeBaseError
from .graph_service import GraphService
from .pipeline import VideoPipeline

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per pipeline action."""
    parser = argparse.ArgumentParser(
        description="YouTube Knowledge Base - Summarize, index and query video transcripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a video by URL
  python -m src.knowledge_pipeline.cli add https://www.youtube.com/watch?v=dQw4w9WgXcQ

  # Add and immediately process it
  python -m src.knowledge_pipeline.cli add dQw4w9WgXcQ --process

  # Process a stored video (transcript, summary, index)
  python -m src.knowledge_pipeline.cli process <video-id>

  # Ask a question across recent videos, or specific ones
  python -m src.knowledge_pipeline.cli ask "What is a closure?" --video-id <video-id>

  # Print knowledge graph stats
  python -m src.knowledge_pipeline.cli graph
        """,
    )
    parser.add_argument(
        "--provider",
        type=str,
        choices=["openai", "gemini", "local"],
        help="Override LLM provider from environment",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Add a YouTube video by URL or id")
    add_parser.add_argument("url", help="YouTube URL or 11 character video id")
    add_parser.add_argument("--category-id", type=str, help="Category to file the video under")
    add_parser.add_argument("--tag", action="append", default=[], help="Tag (repeatable)")
    add_parser.add_argument(
        "--process",
        action="store_true",
        help="Process the video right after adding it",
    )

    process_parser = subparsers.add_parser("process", help="Transcribe, summarize and index a video")
    process_parser.add_argument("video_id", help="Stored video id")

    ask_parser = subparsers.add_parser("ask", help="Ask a question over stored transcripts")
    ask_parser.add_argument("question", help="Question to answer")
    ask_parser.add_argument(
        "--video-id",
        action="append",
        default=[],
        help="Restrict context to this video (repeatable)",
    )

    subparsers.add_parser("graph", help="Show knowledge graph statistics")
    return parser


def print_banner(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


async def run_command(args: argparse.Namespace, pipeline: VideoPipeline) -> None:
    """Execute one parsed subcommand against the pipeline."""
    if args.command == "add":
        video = await pipeline.add_video(args.url, category_id=args.category_id, tags=args.tag)
        print_banner("Video Added")
        print(f"ID: {video.id}")
        print(f"Title: {video.title}")
        print(f"Author: {video.author}")
        print(f"URL: {video.url}")

        if args.process:
            args.video_id = video.id
            args.command = "process"
            await run_command(args, pipeline)
            return

    elif args.command == "process":
        result = await pipeline.process_video(args.video_id)
        print_banner("Video Processed")
        print(f"Title: {result.video.title}")
        print(f"Chunks indexed: {result.index.chunk_count}")
        print(f"\nQuick summary:\n  {result.summary.quick_summary}")
        print("\nKey points:")
        for point in result.summary.key_points:
            print(f"  - {point}")

    elif args.command == "ask":
        result = await pipeline.rag_service.query(args.question, args.video_id)
        print_banner("Answer")
        if not result.success:
            print(f"⚠️  {result.message}")
        else:
            print(result.answer)
            print("\nSources:")
            for source in result.sources:
                print(f"  - {source.title} ({source.url})")

    elif args.command == "graph":
        graph = await GraphService(pipeline.storage_service).build_graph()
        print_banner("Knowledge Graph")
        print(f"Videos: {graph.stats.video_count}")
        print(f"Edges: {graph.stats.edge_count}")
        print(f"Category groups: {graph.stats.categories}")

    print("=" * 60 + "\n")


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the knowledge base pipeline.

    This function parses command-line arguments, initializes the pipeline,
    runs the requested command, and displays results to the user.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    config = get_config()
    if args.provider:
        config.llm_provider = args.provider

    logger.info("cli_started", command=args.command, llm_provider=config.llm_provider)

    pipeline = VideoPipeline(config)

    try:
        await run_command(args, pipeline)
    except KnowledgeBaseError as e:
        logger.error("cli_command_failed", command=args.command, error_type=type(e).__name__)
        print(f"\n❌ {type(e).__name__}: {e.message}")
        return 1
    finally:
        await pipeline.close()

    logger.info("cli_completed", command=args.command)
    return 0


def cli() -> None:
    """Console script entry point."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
