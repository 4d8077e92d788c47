#!/usr/bin/env python
"""Chunk text files and load them into the knowledge base.

Usage:
    python -m scripts.ingest_documents docs/handbook.md docs/faq.txt --chunk-size 800

Each file is split on sentence boundaries and every chunk is embedded and
upserted into the configured Qdrant collection.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from knowledge_agent.config import get_settings
from knowledge_agent.documents.loader import TextFileLoader
from knowledge_agent.embeddings.service import HashEmbeddingService
from knowledge_agent.exceptions import KnowledgeAgentError
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.logging_config import get_logger, setup_logging
from knowledge_agent.vectorstore.service import QdrantVectorStore

logger = get_logger(__name__)


def collect_files(paths: list[Path], loader: TextFileLoader) -> list[Path]:
    """Expand directories into the supported files they contain."""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if loader.supports(p)))
        else:
            files.append(path)
    return files


async def ingest(paths: list[Path], chunk_size: int, clear: bool = False) -> int:
    """Ingest files and return the number of chunks written.

    Args:
        paths: Files or directories to ingest.
        chunk_size: Maximum chunk size in characters.
        clear: Remove existing documents first.

    Returns:
        Total chunks written.
    """
    setup_logging(level="INFO")
    settings = get_settings()

    loader = TextFileLoader()
    vector_store = QdrantVectorStore(settings.qdrant)
    knowledge = KnowledgeBase(
        HashEmbeddingService(settings.embedding),
        vector_store,
        settings.qdrant,
    )

    total = 0
    try:
        if clear:
            removed = await knowledge.clear()
            logger.info(f"Removed {removed} existing documents")

        for file_path in collect_files(paths, loader):
            document = loader.load(file_path)
            result = await knowledge.ingest_text(
                document.text,
                metadata=document.metadata,
                chunk_size=chunk_size,
            )
            total += result.total_documents
            print(f"{file_path}: {result.chunks} chunks")
    finally:
        await vector_store.close()

    print(f"\nIngested {total} chunks into '{knowledge.collection}'")
    return total


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Load text files into the knowledge base",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "paths",
        type=Path,
        nargs="+",
        help="Files or directories to ingest",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=1000,
        help="Maximum chunk size in characters",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Remove all existing documents first",
    )

    args = parser.parse_args()

    try:
        asyncio.run(ingest(args.paths, args.chunk_size, clear=args.clear))
    except KnowledgeAgentError as e:
        logger.error(f"Ingestion failed: {e.message}", extra={"error_code": e.code.value})
        sys.exit(1)


if __name__ == "__main__":
    main()
