"""Shared fixtures for tests."""
import json
from datetime import datetime, timezone
from typing import List

import pytest

from linker.models import Link
from linker.scoring import FixedClock, Weights


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


SAMPLE_STORE = {
    "links": [
        {
            "id": "1700000000000000001",
            "url": "https://go.dev/blog",
            "title": "Go Blog",
            "comment": "",
            "tags": ["go", "cli"],
            "labels": {},
            "open_count": 10,
            "last_opened": None,
        },
        {
            "id": "1700000000000000002",
            "url": "https://docs.python.org",
            "title": "Python Docs",
            "comment": "Official standard library reference",
            "tags": ["python", "docs"],
            "labels": {"lang": "python"},
            "open_count": 3,
            "last_opened": "2025-05-31T12:00:00+00:00",
        },
        {
            "id": "1700000000000000003",
            "url": "https://sqlite.org/lang.html",
            "title": "SQLite SQL Syntax",
            "comment": "query language notes",
            "tags": ["sqlite", "db"],
            "labels": {"env": "prod", "lang": "sql"},
            "open_count": 0,
            "last_opened": "0001-01-01T00:00:00Z",
        },
    ]
}


class InMemoryLinkStore:
    """Link store kept entirely in memory."""

    def __init__(self, links: List[Link] = None):
        self.links = list(links or [])
        self.committed: List[dict] = [link.to_dict() for link in self.links]
        self.persist_calls = 0

    def load(self) -> List[Link]:
        self.links = [Link.from_dict(record) for record in self.committed]
        return self.links

    def append(self, link: Link) -> None:
        self.links.append(link)

    def persist(self) -> None:
        self.persist_calls += 1
        self.committed = [link.to_dict() for link in self.links]


@pytest.fixture
def go_weights():
    return Weights(tag=2, label=1.5, title=3, comment=1, popularity=0.05, recency=0.02)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def sample_links():
    """Return sample links as JsonLinkStore.load would."""
    return [Link.from_dict(record) for record in SAMPLE_STORE["links"]]


@pytest.fixture
def memory_store(sample_links):
    return InMemoryLinkStore(sample_links)


@pytest.fixture
def links_path(tmp_path):
    """Create a temporary links file with sample data."""
    path = tmp_path / ".linker" / "links.json"
    path.parent.mkdir()
    path.write_text(json.dumps(SAMPLE_STORE, indent=2))
    return path
