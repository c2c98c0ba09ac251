"""
Relevance Ranker

Orders candidate projects by how many of their skills the student already
has, newest first among equal scores.

    score = |project skills ∩ student skills| / |project skills|

A project without skills scores 0. With no student skills every score is 0
and the order is plain recency.
"""

from datetime import datetime
from typing import Any, FrozenSet, Iterable, Iterator, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Candidate(BaseModel):
    """One rankable item. `payload` rides along untouched (e.g. the DB row)."""

    model_config = ConfigDict(frozen=True)

    id: Any
    tags: FrozenSet[Any] = frozenset()
    created_at: Optional[datetime] = None
    payload: dict = Field(default_factory=dict)

    @field_validator("tags", mode="before")
    @classmethod
    def _missing_tags_are_empty(cls, value):
        return frozenset() if value is None else value


class ScoredCandidate(NamedTuple):
    candidate: Candidate
    score: float


def relevance_score(tags: Iterable[Any], reference_tags: Iterable[Any]) -> float:
    """Fraction of `tags` present in `reference_tags` (0.0 when no tags)."""
    tags = frozenset(tags or ())
    if not tags:
        return 0.0
    return len(tags & frozenset(reference_tags or ())) / len(tags)


def _recency_key(created_at: Optional[datetime]) -> float:
    # Missing timestamps sort as oldest
    return created_at.timestamp() if created_at is not None else float("-inf")


class RankedCandidates:
    """
    Lazy, restartable ranking.

    Nothing is scored until iteration starts, and every iteration scores and
    sorts again from the snapshot taken at construction.
    """

    def __init__(self, candidates: Iterable[Candidate], reference_tags: Iterable[Any]):
        self._candidates = tuple(candidates)
        self._reference_tags = frozenset(reference_tags or ())

    def __iter__(self) -> Iterator[ScoredCandidate]:
        scored = [
            ScoredCandidate(c, relevance_score(c.tags, self._reference_tags))
            for c in self._candidates
        ]
        # reverse=True keeps the sort stable, so exact ties keep input order
        scored.sort(key=lambda s: (s.score, _recency_key(s.candidate.created_at)), reverse=True)
        return iter(scored)

    def __len__(self) -> int:
        return len(self._candidates)


def rank_candidates(candidates: Iterable[Candidate], reference_tags: Iterable[Any]) -> RankedCandidates:
    """Rank `candidates` against `reference_tags` (see module docstring)."""
    return RankedCandidates(candidates, reference_tags)
