"""
Index a directory of WebVTT lecture transcripts into a topic's partition.

    python ingest.py --topic nodejs --source ./transcripts/nodejs

Each .vtt file becomes one lecture (file name without extension is the
label shown in citations).  Re-running is safe: passages are upserted.
"""
import argparse
import asyncio
import sys
from pathlib import Path

from lectureqa.core.config import get_settings
from lectureqa.ingestion.indexer import ingest_directory
from lectureqa.ingestion.vtt import DEFAULT_MAX_CHARS
from lectureqa.pipeline.registry import PartitionRegistry
from lectureqa.services.embedding import build_embedding_service
from lectureqa.services.llm import build_openai_client
from lectureqa.services.vector_store import VectorStore, build_chroma_client
from lectureqa.utils.logging import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Index WebVTT lecture transcripts into the vector store."
    )
    parser.add_argument("--topic", required=True, help="Topic name whose partition receives the passages.")
    parser.add_argument("--source", required=True, help="Directory containing .vtt transcripts.")
    parser.add_argument(
        "--max-chars",
        type=int,
        default=DEFAULT_MAX_CHARS,
        help="Maximum characters per indexed passage.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.log_level)

    registry = PartitionRegistry.from_settings(settings)
    partition = registry.partition_for(args.topic)
    if partition is None:
        print(f"Unknown topic '{args.topic}'. Configured topics: {', '.join(registry.topic_names())}")
        sys.exit(1)

    openai_client = build_openai_client(settings)
    embedding_service = build_embedding_service(settings, openai_client)
    vector_store = VectorStore(build_chroma_client(settings))

    print(f"Indexing {args.source} -> {partition.collection_name}")
    try:
        counts = asyncio.run(ingest_directory(
            Path(args.source),
            partition,
            embedding_service,
            vector_store,
            max_chars=args.max_chars,
        ))
    except FileNotFoundError as e:
        print(str(e))
        sys.exit(1)

    if not counts:
        print("No .vtt files found.")
        return
    for name, count in counts.items():
        print(f"✓ {name}: {count} passage(s)")
    print(f"\nDone: {sum(counts.values())} passage(s) from {len(counts)} file(s)")


if __name__ == "__main__":
    main()
