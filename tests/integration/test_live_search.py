"""
Semantic Search Integration Tests

Tests the /search endpoint against a running Notegraph stack with a real
embedding model.
"""

import httpx
import pytest

HIKING_NOTES = [
    "I love hiking in the mountains",
    "Mountain trails are beautiful",
]
UNRELATED_NOTE = "I need to buy groceries"


@pytest.mark.live
@pytest.mark.asyncio
async def test_search_endpoint_live(wait_for_api):
    """
    Verify semantic search ranks topical notes above unrelated ones.

    Prerequisites:
        - Stack running with the ollama (or openai/local) provider

    Note:
        Creates its own notes and deletes them afterwards.
    """
    base_url = "http://localhost:8000/api/v1/notes"

    async with httpx.AsyncClient(timeout=30.0) as client:
        created = []
        try:
            for content in [*HIKING_NOTES, UNRELATED_NOTE]:
                res = await client.post(f"{base_url}/", json={"content": content})
                assert res.status_code == 201, f"Create failed: {res.text}"
                created.append(res.json()["id"])

            response = await client.post(
                f"{base_url}/search",
                json={"query": "mountains", "k": 10, "min_similarity": -1.0},
            )

            assert response.status_code == 200, f"Search failed: {response.text}"
            ranked = [hit["note"]["id"] for hit in response.json() if hit["note"]["id"] in created]
            assert ranked.index(created[2]) == 2  # groceries ranks last
        finally:
            for note_id in created:
                await client.delete(f"{base_url}/{note_id}")
