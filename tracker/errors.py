"""Errors raised by the tracker's reference-entity layer.

Each error carries the HTTP status the API answers with, so the FastAPI
handler can map any :class:`TrackerError` without a lookup table.
"""
from __future__ import annotations


class TrackerError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EntityNotFound(TrackerError):
    status_code = 404

    def __init__(self, kind: str, entity_id: int):
        super().__init__(f"{kind.capitalize()} not found")
        self.kind = kind
        self.entity_id = entity_id


class DuplicateEntity(TrackerError):
    """A company/source with the same canonical key already exists.

    ``existing_id`` and ``existing_name`` identify the row that owns the key so
    callers can offer "use existing Acme Corp instead?".
    """

    status_code = 409

    def __init__(self, kind: str, existing_id: int, existing_name: str):
        super().__init__(
            f'A similar {kind} already exists: "{existing_name}". '
            f"Use the existing {kind} or provide a more distinct name."
        )
        self.kind = kind
        self.existing_id = existing_id
        self.existing_name = existing_name

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "kind": self.kind,
            "existing_id": self.existing_id,
            "existing_name": self.existing_name,
        }


__all__ = ["TrackerError", "EntityNotFound", "DuplicateEntity"]
