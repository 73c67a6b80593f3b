"""Create / find-or-create / rename for companies and sources.

The lookup by canonical key is advisory: it catches almost every duplicate and
lets us name the row that already owns the key. The UNIQUE constraint on
``normalized_name`` is the authority; a violation on commit is translated into
the same :class:`DuplicateEntity` the lookup raises.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tracker.config import similarity_limit, similarity_threshold
from tracker.core.normalize import SOURCE
from tracker.core.similarity import rank_by_similarity
from tracker.db.models import EDITABLE_FIELDS, Entity, Source, model_for
from tracker.errors import DuplicateEntity, EntityNotFound

LOGGER = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def find_by_normalized_name(
    session: Session,
    kind: str,
    key: str,
    *,
    exclude_id: Optional[int] = None,
) -> Optional[Entity]:
    model = model_for(kind)
    stmt = select(model).where(model.normalized_name == key)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    return session.execute(stmt).scalars().first()


def get_entity(session: Session, kind: str, entity_id: int) -> Optional[Entity]:
    return session.get(model_for(kind), entity_id)


def get_entity_or_raise(session: Session, kind: str, entity_id: int) -> Entity:
    entity = get_entity(session, kind, entity_id)
    if entity is None:
        raise EntityNotFound(kind, entity_id)
    return entity


def _check_fields(kind: str, fields: dict[str, Any]) -> None:
    unknown = set(fields) - EDITABLE_FIELDS[kind]
    if unknown:
        raise ValueError(f"Unsupported {kind} field(s): {', '.join(sorted(unknown))}")


def _duplicate(kind: str, existing: Entity, path: str) -> DuplicateEntity:
    LOGGER.info(
        "duplicate kind=%s key=%r existing_id=%s path=%s",
        kind,
        existing.normalized_name,
        existing.id,
        path,
    )
    return DuplicateEntity(kind, existing.id, existing.name)


def _commit_or_raise_duplicate(
    session: Session,
    kind: str,
    key: str,
    *,
    exclude_id: Optional[int] = None,
) -> None:
    """Commit, turning a lost race on the canonical key into DuplicateEntity.

    Any IntegrityError that is not explained by another row owning ``key`` is
    re-raised untouched.
    """
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        winner = find_by_normalized_name(session, kind, key, exclude_id=exclude_id)
        if winner is None:
            raise
        raise _duplicate(kind, winner, "constraint") from exc


def create_entity(session: Session, kind: str, name: str, **fields: Any) -> Entity:
    """Insert a new company/source or raise DuplicateEntity naming the existing one."""
    model = model_for(kind)
    _check_fields(kind, fields)

    key = model.normalizer(name)
    existing = find_by_normalized_name(session, kind, key)
    if existing is not None:
        raise _duplicate(kind, existing, "precheck")

    entity = model(name=name, **fields)
    session.add(entity)
    _commit_or_raise_duplicate(session, kind, key)
    session.refresh(entity)

    LOGGER.info("created kind=%s id=%s key=%r", kind, entity.id, key)
    return entity


def find_or_create_entity(session: Session, kind: str, name: str) -> Entity:
    """Return the entity owning ``name``'s canonical key, creating it if needed.

    Idempotent: repeated calls with equivalent names return the same row, even
    when a concurrent writer creates it between our lookup and insert.
    """
    key = model_for(kind).normalizer(name)
    existing = find_by_normalized_name(session, kind, key)
    if existing is not None:
        LOGGER.debug("reused kind=%s id=%s key=%r", kind, existing.id, key)
        return existing

    try:
        return create_entity(session, kind, name)
    except DuplicateEntity as exc:
        winner = get_entity(session, kind, exc.existing_id)
        if winner is None:
            raise
        return winner


def update_entity(
    session: Session,
    kind: str,
    entity_id: int,
    name: Optional[str] = None,
    **fields: Any,
) -> Entity:
    """Apply a partial update; a new name must not collide with another row."""
    entity = get_entity_or_raise(session, kind, entity_id)
    _check_fields(kind, fields)

    key = entity.normalized_name
    if name is not None:
        new_key = entity.normalizer(name)
        if new_key != key:
            conflict = find_by_normalized_name(session, kind, new_key, exclude_id=entity.id)
            if conflict is not None:
                raise _duplicate(kind, conflict, "precheck")
            key = new_key
        # normalized_name follows via the model validator
        entity.name = name

    for field, value in fields.items():
        setattr(entity, field, value)

    _commit_or_raise_duplicate(session, kind, key, exclude_id=entity.id)
    session.refresh(entity)
    return entity


def update_entity_name(session: Session, kind: str, entity_id: int, new_name: str) -> Entity:
    return update_entity(session, kind, entity_id, name=new_name)


def list_entities(session: Session, kind: str) -> Sequence[Entity]:
    """All companies by name; active sources, most used first."""
    model = model_for(kind)
    stmt = select(model)
    if kind == SOURCE:
        stmt = stmt.where(Source.is_active.is_(True)).order_by(Source.usage_count.desc(), Source.name)
    else:
        stmt = stmt.order_by(model.name)
    return session.execute(stmt).scalars().all()


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_entities(session: Session, kind: str, term: str, limit: int = SEARCH_LIMIT) -> Sequence[Entity]:
    model = model_for(kind)
    stmt = select(model).where(model.name.ilike(f"%{_escape_like(term)}%", escape="\\"))
    if kind == SOURCE:
        stmt = stmt.where(Source.is_active.is_(True)).order_by(Source.usage_count.desc())
    stmt = stmt.order_by(model.name).limit(limit)
    return session.execute(stmt).scalars().all()


def find_similar(
    session: Session,
    kind: str,
    name: str,
    *,
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
    exclude_id: Optional[int] = None,
) -> Sequence[Tuple[Entity, float]]:
    """'Did you mean' candidates for ``name``; never used to block a create."""
    model = model_for(kind)
    threshold = similarity_threshold() if threshold is None else threshold
    limit = similarity_limit() if limit is None else limit

    stmt = select(model).order_by(model.id)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    candidates = session.execute(stmt).scalars().all()

    return rank_by_similarity(
        name,
        candidates,
        key=lambda entity: entity.name,
        threshold=threshold,
        limit=limit,
        normalizer=model.normalizer,
    )


def increment_source_usage(session: Session, source_id: int) -> None:
    get_entity_or_raise(session, SOURCE, source_id)
    session.execute(
        update(Source)
        .where(Source.id == source_id)
        .values(usage_count=func.coalesce(Source.usage_count, 0) + 1)
    )
    session.commit()


def deactivate_source(session: Session, source_id: int) -> Source:
    """Soft delete: the source keeps its canonical key."""
    source = get_entity_or_raise(session, SOURCE, source_id)
    source.is_active = False
    session.commit()
    session.refresh(source)
    LOGGER.info("deactivated kind=source id=%s", source_id)
    return source


__all__ = [
    "find_by_normalized_name",
    "get_entity",
    "get_entity_or_raise",
    "create_entity",
    "find_or_create_entity",
    "update_entity",
    "update_entity_name",
    "list_entities",
    "search_entities",
    "find_similar",
    "increment_source_usage",
    "deactivate_source",
]
