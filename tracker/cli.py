# tracker/cli.py
"""Command line helpers for inspecting and maintaining reference entities.

    tracker normalize "Acme Corp. Ltd."
    tracker similarity "Google LLC" "Gogle" --kind company
    tracker init-db
    tracker renormalize --kind company --dry-run
"""
from __future__ import annotations

import argparse
import json
import logging
from typing import Optional, Sequence

from tracker.config import log_level
from tracker.core.normalize import COMPANY, ENTITY_KINDS, normalizer_for
from tracker.core.similarity import similarity


def _cmd_normalize(args: argparse.Namespace) -> int:
    print(normalizer_for(args.kind)(args.name))
    return 0


def _cmd_similarity(args: argparse.Namespace) -> int:
    score = similarity(args.a, args.b, normalizer_for(args.kind))
    print(f"{score:.4f}")
    return 0


def _cmd_init_db(args: argparse.Namespace) -> int:
    from tracker.db.models import Base
    from tracker.db.session import engine_url, get_engine

    logging.getLogger(__name__).info("Initializing database schema at %s", engine_url())
    Base.metadata.create_all(bind=get_engine())
    return 0


def _cmd_renormalize(args: argparse.Namespace) -> int:
    from tracker.db.maintenance import renormalize_names
    from tracker.db.session import get_session

    kinds = ENTITY_KINDS if args.kind == "all" else (args.kind,)
    with get_session() as session:
        summaries = [renormalize_names(session, kind, dry_run=args.dry_run).to_dict() for kind in kinds]
    print(json.dumps(summaries, indent=2))
    return 1 if any(s["collisions"] for s in summaries) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tracker", description="Job tracker reference-entity tools")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("normalize", help="Print the canonical key for a name")
    p.add_argument("name")
    p.add_argument("--kind", choices=ENTITY_KINDS, default=COMPANY)
    p.set_defaults(func=_cmd_normalize)

    p = sub.add_parser("similarity", help="Score two names in [0, 1]")
    p.add_argument("a")
    p.add_argument("b")
    p.add_argument("--kind", choices=ENTITY_KINDS, default=COMPANY)
    p.set_defaults(func=_cmd_similarity)

    p = sub.add_parser("init-db", help="Create tables in the configured database")
    p.set_defaults(func=_cmd_init_db)

    p = sub.add_parser("renormalize", help="Recompute stored canonical keys")
    p.add_argument("--kind", choices=ENTITY_KINDS + ("all",), default="all")
    p.add_argument("--dry-run", action="store_true", help="Report changes without writing")
    p.set_defaults(func=_cmd_renormalize)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=log_level())
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    # When executed as `python -m tracker.cli ...`
    raise SystemExit(main())
