"""Recompute canonical keys after the normalization rules change.

Rows whose new key stays owned by another row are reported as collisions and
left untouched; merging them is a manual decision. Keys vacated during the same
pass are reused, so the outcome does not depend on row order.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from tracker.db.models import model_for

LOGGER = logging.getLogger(__name__)


@dataclass
class RenormalizeSummary:
    kind: str
    scanned: int = 0
    updated: int = 0
    dry_run: bool = False
    collisions: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _collision(row, key: str, owner_id: int) -> dict:
    return {"id": row.id, "name": row.name, "key": key, "owner_id": owner_id}


def renormalize_names(session: Session, kind: str, *, dry_run: bool = False) -> RenormalizeSummary:
    model = model_for(kind)
    summary = RenormalizeSummary(kind=kind, dry_run=dry_run)

    rows = session.execute(select(model).order_by(model.id)).scalars().all()
    summary.scanned = len(rows)

    # key -> id of the row that ends the pass holding it
    final_owner: dict[str, int] = {}
    pending = []
    for row in rows:
        new_key = model.normalizer(row.name)
        if new_key == row.normalized_name:
            final_owner[new_key] = row.id
        else:
            pending.append((row, new_key))

    moves = []
    for row, new_key in pending:
        owner = final_owner.get(new_key)
        if owner is not None:
            summary.collisions.append(_collision(row, new_key, owner))
        else:
            final_owner[new_key] = row.id
            moves.append((row, new_key))

    # Apply a move only once nobody holds its target key; flush each one so
    # the UNIQUE constraint never sees two rows on the same key.
    holders = {row.normalized_name: row.id for row in rows}
    while moves:
        blocked = []
        for row, new_key in moves:
            if new_key in holders:
                blocked.append((row, new_key))
                continue
            LOGGER.info(
                "renormalize kind=%s id=%s old=%r new=%r dry_run=%s",
                kind, row.id, row.normalized_name, new_key, dry_run,
            )
            del holders[row.normalized_name]
            holders[new_key] = row.id
            summary.updated += 1
            if not dry_run:
                row.normalized_name = new_key
                session.flush()
        if len(blocked) == len(moves):
            # rows swapping keys with each other
            for row, new_key in blocked:
                summary.collisions.append(_collision(row, new_key, holders[new_key]))
            break
        moves = blocked

    if dry_run:
        session.rollback()
    else:
        session.commit()

    if summary.collisions:
        summary.collisions.sort(key=lambda c: c["id"])
        LOGGER.warning("renormalize kind=%s collisions=%s", kind, len(summary.collisions))
    return summary
