from __future__ import annotations

from datetime import datetime
from typing import Optional, Type, Union

from sqlalchemy import (
    String,
    DateTime,
    Boolean,
    Enum,
    UniqueConstraint,
    Text,
    Integer,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates

from tracker.core.normalize import COMPANY, SOURCE, normalize_company_name, normalize_source_name

# --- SQLAlchemy base ---------------------------------------------------------

class Base(DeclarativeBase):
    """Declarative base for all models."""
    pass


# --- Enums -------------------------------------------------------------------

SOURCE_CATEGORIES = (
    "job_board",
    "aggregator",
    "company_site",
    "government",
    "recruiter",
    "referral",
    "community",
    "other",
)


# --- Models ------------------------------------------------------------------

class ReferenceEntity:
    """Columns and behaviour shared by the global, name-keyed entities.

    ``normalized_name`` follows ``name``: assigning a display name recomputes the
    canonical key in the same flush, so the pair can never drift apart.
    """

    kind = ""

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    @staticmethod
    def normalizer(raw: Optional[str]) -> str:  # pragma: no cover - overridden
        raise NotImplementedError

    @validates("name")
    def _sync_normalized_name(self, _key: str, value: str) -> str:
        self._incoming_name = value
        try:
            self.normalized_name = self.normalizer(value)
        finally:
            del self._incoming_name
        return value

    @validates("normalized_name")
    def _check_normalized_name(self, _key: str, value: str) -> str:
        name = getattr(self, "_incoming_name", self.name)
        expected = self.normalizer(name)
        if value != expected:
            raise ValueError(
                f"normalized_name for {name!r} must be {expected!r}, got {value!r}"
            )
        return value


class Company(ReferenceEntity, Base):
    __tablename__ = "companies"
    __table_args__ = (
        UniqueConstraint("normalized_name", name="uq_company_normalized_name"),
    )

    kind = COMPANY
    normalizer = staticmethod(normalize_company_name)

    website: Mapped[Optional[str]] = mapped_column(String(255))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    industry: Mapped[Optional[str]] = mapped_column(String(255))

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Company id={self.id} name={self.name!r}>"


class Source(ReferenceEntity, Base):
    """A job board, recruiter or other channel roles are found through."""

    __tablename__ = "sources"
    __table_args__ = (
        UniqueConstraint("normalized_name", name="uq_source_normalized_name"),
    )

    kind = SOURCE
    normalizer = staticmethod(normalize_source_name)

    url: Mapped[Optional[str]] = mapped_column(String(500))
    logo_url: Mapped[Optional[str]] = mapped_column(String(500))
    category: Mapped[Optional[str]] = mapped_column(
        Enum(*SOURCE_CATEGORIES, name="source_category_enum", native_enum=False), nullable=True
    )
    region: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Source id={self.id} name={self.name!r} active={self.is_active}>"


Entity = Union[Company, Source]

MODELS: dict[str, Type[ReferenceEntity]] = {
    COMPANY: Company,
    SOURCE: Source,
}

# Columns a caller may set besides the name; everything else is owned by us.
EDITABLE_FIELDS: dict[str, frozenset[str]] = {
    COMPANY: frozenset({"website", "location", "industry"}),
    SOURCE: frozenset({"url", "logo_url", "category", "region", "description"}),
}


def model_for(kind: str) -> Type[ReferenceEntity]:
    try:
        return MODELS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind!r}") from None


__all__ = [
    "Base",
    "ReferenceEntity",
    "Company",
    "Source",
    "Entity",
    "MODELS",
    "EDITABLE_FIELDS",
    "SOURCE_CATEGORIES",
    "model_for",
]
