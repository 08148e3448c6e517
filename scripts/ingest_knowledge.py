#!/usr/bin/env python3
"""Ingest text files into the knowledge base.

Each file becomes one resource, or one resource per blank-line separated
paragraph with --split-paragraphs. Files go through the same ingestion
workflow the add_resource tool uses.

Usage:
    python scripts/ingest_knowledge.py notes/*.txt
    python scripts/ingest_knowledge.py --split-paragraphs facts.md
    python scripts/ingest_knowledge.py --dry-run notes/*.txt
"""

from __future__ import annotations

import argparse
import asyncio
import os
import re
import sys
from pathlib import Path

# Ensure project root is on sys.path so we can import src modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


def _collect_resources(paths: list[Path], split_paragraphs: bool) -> list[tuple[str, str]]:
    """Return (label, content) pairs for every non-blank resource in paths."""
    resources: list[tuple[str, str]] = []
    for path in paths:
        text = path.read_text(encoding="utf-8")
        if split_paragraphs:
            paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text)]
            for number, paragraph in enumerate(p for p in paragraphs if p):
                resources.append((f"{path.name}#{number + 1}", paragraph))
        elif text.strip():
            resources.append((path.name, text.strip()))
    return resources


async def ingest(paths: list[Path], split_paragraphs: bool, dry_run: bool = False) -> int:
    """Ingest resources from paths and return the number of failures."""
    from src.assistant.bootstrap import KnowledgeAssistant
    from src.knowledge.errors import KnowledgeBaseError

    missing = [p for p in paths if not p.is_file()]
    if missing:
        for path in missing:
            print(f"Error: file does not exist: {path}")
        return len(missing)

    resources = _collect_resources(paths, split_paragraphs)
    print(f"Found {len(resources)} resource(s) in {len(paths)} file(s)")

    if dry_run:
        for label, content in resources:
            print(f"  {label}: {len(content)} chars")
        print("\n[DRY RUN] No resources were ingested.")
        return 0

    failures = 0
    async with KnowledgeAssistant.from_settings() as assistant:
        for label, content in resources:
            try:
                await assistant.ingest({"content": content})
                print(f"  [OK] {label}")
            except KnowledgeBaseError as exc:
                failures += 1
                print(f"  [FAIL] {label}: {exc}")

    print(f"\nIngested {len(resources) - failures}/{len(resources)} resource(s)")
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Ingest text files into the knowledge base.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python scripts/ingest_knowledge.py notes/*.txt\n"
            "  python scripts/ingest_knowledge.py --split-paragraphs facts.md\n"
        ),
    )
    parser.add_argument("files", nargs="+", type=Path, help="Text files to ingest")
    parser.add_argument(
        "--split-paragraphs",
        action="store_true",
        help="Create one resource per blank-line separated paragraph",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be ingested without connecting to the store",
    )
    args = parser.parse_args()

    failures = asyncio.run(ingest(args.files, args.split_paragraphs, args.dry_run))
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
