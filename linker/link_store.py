"""JSON link store with whole-snapshot atomic writes."""
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from linker.models import Link


INDEX_DIR_NAME = ".linker"
LINKS_FILE_NAME = "links.json"


class LinkStore(Protocol):
    """Protocol for link stores, so callers can swap in other backends."""

    def load(self) -> List[Link]:
        """Load all links. Never fails; storage problems give an empty list."""
        ...

    def append(self, link: Link) -> None:
        """Add a link to the in-memory snapshot."""
        ...

    def persist(self) -> None:
        """Replace the stored snapshot with the in-memory one.

        Raises:
            OSError: If the snapshot could not be written
        """
        ...


def get_index_dir(base: Optional[Path] = None) -> Path:
    """Get the index directory.

    Args:
        base: Configured index directory. If None, uses .linker in the current directory.

    Returns:
        Path to the index directory
    """
    if base is not None:
        return base
    return Path.cwd() / INDEX_DIR_NAME


def get_links_path(index_dir: Optional[Path] = None) -> Path:
    """Get the path to the links file inside the index directory."""
    return get_index_dir(index_dir) / LINKS_FILE_NAME


def load_store_file(path: Path) -> Dict[str, Any]:
    """Load the store JSON file.

    Args:
        path: Path to the links file

    Returns:
        Parsed JSON store data

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file is malformed
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_store_file(data: Dict[str, Any], path: Path) -> None:
    """Write store data to file atomically.

    The previous file stays intact until the final rename.

    Args:
        data: Store data to write
        path: Path to the links file
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Write to temp file first
    temp_path = path.with_name(path.name + ".tmp")

    with open(temp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.flush()
        os.fsync(f.fileno())

    # Atomic rename
    temp_path.replace(path)


class JsonLinkStore:
    """Link store backed by a single JSON file."""

    def __init__(self, path: Path):
        self.path = path
        self._links: Optional[List[Link]] = None

    def load(self) -> List[Link]:
        """Load links from disk, replacing the in-memory snapshot.

        Returns:
            Links in stored order; empty if the file is missing or unreadable
        """
        self._links = []

        try:
            data = load_store_file(self.path)
        except FileNotFoundError:
            return self._links
        except (OSError, json.JSONDecodeError) as e:
            print(f"[LinkStore] Could not read {self.path}: {e}", file=sys.stderr)
            return self._links

        try:
            records = data.get("links") or []
            self._links = [Link.from_dict(record) for record in records]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            print(f"[LinkStore] Malformed store {self.path}: {e}", file=sys.stderr)
            self._links = []

        return self._links

    @property
    def links(self) -> List[Link]:
        """The in-memory snapshot, loaded on first access."""
        if self._links is None:
            self.load()
        return self._links

    def append(self, link: Link) -> None:
        self.links.append(link)

    def persist(self) -> None:
        data = {"links": [link.to_dict() for link in self.links]}
        write_store_file(data, self.path)

    def find_by_id(self, link_id: str) -> Optional[Link]:
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def find_by_url(self, url: str) -> Optional[Link]:
        for link in self.links:
            if link.url == url:
                return link
        return None

    def record_open(self, link: Link, when: datetime) -> None:
        """Count an open of a link and persist the store.

        Args:
            link: Link that was opened (matched by ID in the snapshot)
            when: Instant of the open

        Raises:
            KeyError: If the link is not in the store
            OSError: If the store could not be written
        """
        stored = self.find_by_id(link.id)
        if stored is None:
            raise KeyError(f"Link not in store: {link.id}")

        stored.open_count += 1
        stored.last_opened = when
        self.persist()
