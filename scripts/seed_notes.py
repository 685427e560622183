#!/usr/bin/env python3
"""
Seed Sample Notes

Creates a handful of sample notes through a running Notegraph API so that
search and the relationship graph have something to show.

Usage:
    python scripts/seed_notes.py
    python scripts/seed_notes.py --clean  # Delete all notes first
"""

from __future__ import annotations

import argparse
import sys

import httpx

DEFAULT_API_URL = "http://localhost:8000"
TIMEOUT = 60.0  # Embedding a note can take a while on a cold model

SAMPLE_NOTES = [
    "I love hiking in the mountains",
    "Mountain trails are beautiful in autumn",
    "I need to buy groceries: milk, eggs, bread, coffee",
    "Use async/await for I/O bound tasks in Python",
    "Cosine similarity compares the angle between two vectors",
    "Plan a weekend trip to the Alps for some hiking",
]


def log_info(msg: str) -> None:
    print(f"ℹ {msg}")


def log_success(msg: str) -> None:
    print(f"✓ {msg}")


def log_error(msg: str) -> None:
    print(f"✗ {msg}")


def check_api(api_url: str) -> bool:
    try:
        r = httpx.get(f"{api_url}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.RequestError:
        return False


def delete_all_notes(client: httpx.Client) -> int:
    """Delete every existing note. Returns the number deleted."""
    notes = client.get("/notes/").json()
    deleted = 0
    for note in notes:
        if client.delete(f"/notes/{note['id']}").status_code == 204:
            deleted += 1
    return deleted


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed sample notes")
    parser.add_argument("--clean", action="store_true", help="Delete all notes first")
    parser.add_argument("--api-url", default=DEFAULT_API_URL, help="API base URL")
    args = parser.parse_args()

    if not check_api(args.api_url):
        log_error(f"API not available at {args.api_url}")
        return 1
    log_success("API connected")

    with httpx.Client(base_url=f"{args.api_url}/api/v1", timeout=TIMEOUT) as client:
        if args.clean:
            log_info(f"Deleted {delete_all_notes(client)} existing notes")

        created = 0
        for content in SAMPLE_NOTES:
            try:
                r = client.post("/notes/", json={"content": content})
            except httpx.RequestError as e:
                log_error(f"Failed '{content[:30]}': {e}")
                continue
            if r.status_code == 201:
                created += 1
                log_success(f"Created note {r.json()['id']}: {content[:40]}")
            else:
                log_error(f"Failed '{content[:30]}': {r.status_code} - {r.text}")

        graph = client.get("/graph/").json()

    log_info(f"Graph: {len(graph['nodes'])} nodes, {len(graph['edges'])} edges")
    if created == len(SAMPLE_NOTES):
        log_success(f"Created {created}/{len(SAMPLE_NOTES)} notes")
        return 0
    log_error(f"Created {created}/{len(SAMPLE_NOTES)} notes")
    return 1


if __name__ == "__main__":
    sys.exit(main())
