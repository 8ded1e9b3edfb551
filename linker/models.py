"""Link records stored in the local index."""
import re
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


# Older Go-based tooling wrote this for links that were never opened
ZERO_TIMESTAMP = "0001-01-01T00:00:00Z"

# Fractional seconds, which may carry up to nine digits
_FRACTION = re.compile(r"\.(\d+)")


_last_id = 0


def generate_id() -> str:
    """Generate a unique ID for a new link.

    Uses a nanosecond timestamp, bumped when the clock has not moved
    since the previous ID so IDs never repeat within a process.
    """
    global _last_id

    _last_id = max(time.time_ns(), _last_id + 1)
    return str(_last_id)


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Lowercase and de-duplicate tags, keeping first-seen order.

    Args:
        tags: Raw tags; each item may hold several comma-separated tags

    Returns:
        Normalized tag list
    """
    result: List[str] = []
    for raw in tags or []:
        for part in raw.split(","):
            tag = part.strip().lower()
            if tag and tag not in result:
                result.append(tag)
    return result


def parse_labels(values: Optional[Iterable[str]]) -> Dict[str, str]:
    """Parse 'key=value' strings into a labels mapping.

    Args:
        values: Label strings, split on the first '='

    Returns:
        Dict of labels; entries without '=' are skipped
    """
    labels: Dict[str, str] = {}
    for value in values or []:
        key, sep, val = value.partition("=")
        if not sep:
            print(f"Ignoring malformed label (expected key=value): {value}", file=sys.stderr)
            continue
        labels[key] = val
    return labels


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored last_opened value.

    Returns:
        Aware datetime (naive values read as UTC), or None for the
        never-opened values
    """
    if not value or value == ZERO_TIMESTAMP:
        return None

    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat only takes 3 or 6 digits before Python 3.11
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    parsed = datetime.fromisoformat(text)
    if parsed.year == 1:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Link:
    """One bookmarked target with its metadata and usage stats."""
    id: str
    url: str
    title: str = ""
    comment: str = ""
    tags: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    open_count: int = 0
    last_opened: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        url: str,
        title: str = "",
        comment: str = "",
        tags: Optional[Iterable[str]] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> "Link":
        """Create a new, never-opened link with a fresh ID."""
        return cls(
            id=generate_id(),
            url=url,
            title=title,
            comment=comment,
            tags=normalize_tags(tags),
            labels=dict(labels or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON record written to the store file."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "comment": self.comment,
            "tags": list(self.tags),
            "labels": dict(self.labels),
            "open_count": self.open_count,
            "last_opened": self.last_opened.isoformat() if self.last_opened else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        """Build a link from a stored JSON record.

        Raises:
            KeyError: If the record has no id or url
            ValueError: If last_opened is not a valid timestamp
        """
        return cls(
            id=str(data["id"]),
            url=data["url"],
            title=data.get("title") or "",
            comment=data.get("comment") or "",
            tags=list(data.get("tags") or []),
            labels=dict(data.get("labels") or {}),
            open_count=int(data.get("open_count") or 0),
            last_opened=parse_timestamp(data.get("last_opened")),
        )
