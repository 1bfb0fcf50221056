"""Script to rebuild knowledge graph entries for every transcribed video.

This script:
1. Lists all videos that already have a stored transcript
2. Re-chunks each transcript and overwrites its knowledge graph entry
3. Optionally re-runs full processing (transcript + summary + index) instead

Run it after changing CHUNK_SIZE_WORDS or after restoring a database backup.
"""

import argparse
import asyncio

from src.knowledge_pipeline.config import get_config
from src.knowledge_pipeline.errors import KnowledgeBaseError
from src.knowledge_pipeline.pipeline import VideoPipeline
from src.knowledge_pipeline.schemas import RelationshipMetadata


async def reindex(reprocess: bool = False, assume_yes: bool = False) -> None:
    """Rebuild index entries, or fully reprocess, for transcribed videos."""
    pipeline = VideoPipeline(get_config())

    try:
        videos = [v for v in await pipeline.storage_service.list_all_videos() if v.transcription]

        print("Current state:")
        print(f"  Transcribed videos: {len(videos)}")
        print(f"  Chunk size: {pipeline.config.chunk_size_words} words")

        print("\nThis will:")
        if reprocess:
            print("  1. RE-FETCH transcripts and REGENERATE summaries")
            print("  2. OVERWRITE knowledge graph entries")
        else:
            print("  1. OVERWRITE knowledge graph entries from stored transcripts")

        if not assume_yes:
            confirm = input("\nAre you sure? Type 'yes' to continue: ")
            if confirm.lower() != "yes":
                print("Aborted")
                return

        done = 0
        for video in videos:
            try:
                if reprocess:
                    result = await pipeline.process_video(video.id)
                    chunk_count = result.index.chunk_count
                else:
                    result = await pipeline.rag_service.index(
                        video.id,
                        video.transcription,
                        RelationshipMetadata(title=video.title, author=video.author),
                    )
                    chunk_count = result.chunk_count
            except KnowledgeBaseError as e:
                print(f"  ❌ {video.title}: {e.message}")
                continue

            done += 1
            print(f"  ✅ {video.title} ({chunk_count} chunks)")

        print(f"\nDone! Reindexed {done}/{len(videos)} videos.")

    finally:
        await pipeline.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rebuild knowledge graph entries")
    parser.add_argument("--reprocess", action="store_true", help="Re-run full processing")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    asyncio.run(reindex(reprocess=args.reprocess, assume_yes=args.yes))
