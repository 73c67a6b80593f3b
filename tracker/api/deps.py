from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from fastapi import Query
from sqlalchemy.orm import Session

from tracker.config import similarity_limit, similarity_threshold
from tracker.db.session import get_session


def db_session() -> Iterator[Session]:
    """One session per request; rolled back if the handler raises."""
    with get_session() as session:
        yield session


@dataclass(frozen=True)
class SimilarQuery:
    name: str
    threshold: float
    limit: int


def similar_query(
    name: str = Query(..., min_length=1),
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0),
    limit: Optional[int] = Query(None, ge=1, le=50),
) -> SimilarQuery:
    """Query string of the ``/similar`` routes, defaults filled from config."""
    return SimilarQuery(
        name=name,
        threshold=similarity_threshold() if threshold is None else threshold,
        limit=similarity_limit() if limit is None else limit,
    )


__all__ = ["db_session", "SimilarQuery", "similar_query"]
