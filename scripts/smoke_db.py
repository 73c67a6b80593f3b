# scripts/smoke_db.py
from __future__ import annotations

from tracker.db.crud import find_or_create_entity, list_entities
from tracker.db.models import Base
from tracker.db.session import get_engine, get_session


def main() -> None:
    Base.metadata.create_all(bind=get_engine())

    # All three spellings resolve to one company row
    names = ["DemoCo", "DemoCo LLC", "democo, inc."]

    with get_session() as session:
        for name in names:
            company = find_or_create_entity(session, "company", name)
            print(f"{name!r} -> id={company.id} key={company.normalized_name!r}")

        rows = list_entities(session, "company")
        print(f"Fetched {len(rows)} company row(s)")
        for r in rows:
            print(r.id, r.name, r.normalized_name)


if __name__ == "__main__":
    main()
