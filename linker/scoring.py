"""Weighted ranking of links against search terms."""
from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from linker.models import Link


@dataclass(frozen=True)
class Weights:
    """Coefficients for each signal contributing to a link's score.

    All six are required. Negative values act as penalties.
    """
    tag: float
    label: float
    title: float
    comment: float
    popularity: float
    recency: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Weights":
        """Create weights from a mapping holding every coefficient.

        Raises:
            ValueError: If any coefficient is missing or not a number
        """
        names = [f.name for f in fields(cls)]
        missing = [name for name in names if name not in data]
        if missing:
            raise ValueError(f"Missing weight coefficients: {', '.join(missing)}")

        try:
            return cls(**{name: float(data[name]) for name in names})
        except TypeError as e:
            raise ValueError(f"Invalid weight coefficient: {e}") from e


DEFAULT_WEIGHTS = Weights(
    tag=2.0,
    label=1.5,
    title=3.0,
    comment=1.0,
    popularity=0.05,
    recency=0.02,
)


@dataclass(frozen=True)
class ScoredLink:
    """A link paired with its score for one query."""
    link: Link
    score: float


class Clock(Protocol):
    """Source of the current instant, used for recency decay."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def _as_utc(instant: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def score_link(link: Link, terms: Sequence[str], weights: Weights, now: datetime) -> float:
    """Score a link against query terms.

    Each term is matched independently and its contributions are added:
    tags (case-insensitive, once per term), labels (as stored, once per
    matching pair), and title and comment (case-insensitive substring,
    once per term). Popularity and recency are added once per link.

    Args:
        link: Link to score
        terms: Query terms
        weights: Coefficients for each signal
        now: Reference instant for recency decay (naive means UTC)

    Returns:
        Score; 0 for a never-opened link with no matches
    """
    score = 0.0

    title = link.title.lower()
    comment = link.comment.lower()
    tags = [tag.lower() for tag in link.tags]

    for term in terms:
        t = term.lower()

        if t in tags:
            score += weights.tag

        # Several labels may match the same term, each one counts
        for key, value in link.labels.items():
            if t == key or t == value or t == f"{key}={value}":
                score += weights.label

        if t in title:
            score += weights.title

        if t in comment:
            score += weights.comment

    score += link.open_count * weights.popularity

    if link.last_opened is not None:
        days = (_as_utc(now) - _as_utc(link.last_opened)) / timedelta(days=1)
        score += weights.recency / (days + 1)

    return score


def rank(
    links: Sequence[Link],
    terms: Sequence[str],
    weights: Weights,
    clock: Optional[Clock] = None,
) -> List[ScoredLink]:
    """Rank links for a query, highest score first.

    With no terms every link is returned (browse mode). Otherwise only
    links scoring above zero are kept. Equal scores keep store order.

    Args:
        links: Links in store order
        terms: Query terms, already split by the caller
        weights: Coefficients for each signal
        clock: Time source for recency (defaults to the system clock)

    Returns:
        Ranked list of scored links
    """
    now = (clock or SystemClock()).now()

    results = []
    for link in links:
        score = score_link(link, terms, weights, now)
        if not terms or score > 0:
            results.append(ScoredLink(link=link, score=score))

    # list.sort is stable, reverse=True included
    results.sort(key=lambda s: s.score, reverse=True)

    return results
