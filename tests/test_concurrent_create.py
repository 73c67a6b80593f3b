"""Lost races between the canonical-key lookup and the insert.

Each test lets a second writer commit a row with the same key right after the
first writer's lookup came back empty, which is exactly the window the unique
constraint has to cover.
"""
import os
import tempfile
import unittest
from unittest import mock

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

import tracker.db.crud as crud
from tracker.db.models import Company
from tracker.db.session import make_engine
from tracker.errors import DuplicateEntity

REAL_LOOKUP = crud.find_by_normalized_name


class ConcurrentCreateTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        url = "sqlite:///" + os.path.join(self.tmpdir.name, "race.db")
        self.engine = make_engine(url, create_schema=True)
        Session = sessionmaker(bind=self.engine)
        self.winner_session = Session()
        self.loser_session = Session()
        self.winners = []

    def tearDown(self):
        self.winner_session.close()
        self.loser_session.close()
        self.engine.dispose()
        self.tmpdir.cleanup()

    def racing_lookup(self, winner_name):
        """Lookup that lets the other writer commit before answering 'not found'."""

        def lookup(session, kind, key, **kwargs):
            if session is self.loser_session and not self.winners:
                self.winners.append(crud.create_entity(self.winner_session, kind, winner_name))
                return None
            return REAL_LOOKUP(session, kind, key, **kwargs)

        return lookup

    def company_count(self) -> int:
        with sessionmaker(bind=self.engine)() as session:
            return session.execute(select(func.count()).select_from(Company)).scalar_one()

    def test_loser_of_create_race_gets_duplicate(self):
        with mock.patch.object(crud, "find_by_normalized_name", side_effect=self.racing_lookup("Acme Inc")):
            with self.assertLogs("tracker.db.crud", level="INFO") as logs:
                with self.assertRaises(DuplicateEntity) as ctx:
                    crud.create_entity(self.loser_session, "company", "ACME, INC.")

        winner = self.winners[0]
        self.assertEqual(ctx.exception.existing_id, winner.id)
        self.assertEqual(ctx.exception.existing_name, "Acme Inc")
        self.assertTrue(any("path=constraint" in line for line in logs.output))
        self.assertEqual(self.company_count(), 1)

    def test_find_or_create_race_returns_winner(self):
        with mock.patch.object(crud, "find_by_normalized_name", side_effect=self.racing_lookup("Acme Inc")):
            found = crud.find_or_create_entity(self.loser_session, "company", "acme")

        self.assertEqual(found.id, self.winners[0].id)
        self.assertEqual(found.name, "Acme Inc")
        self.assertEqual(self.company_count(), 1)

    def test_rename_race_gets_duplicate(self):
        beta = crud.create_entity(self.loser_session, "company", "Beta")

        with mock.patch.object(crud, "find_by_normalized_name", side_effect=self.racing_lookup("Gamma Inc")):
            with self.assertRaises(DuplicateEntity) as ctx:
                crud.update_entity_name(self.loser_session, "company", beta.id, "Gamma")

        self.assertEqual(ctx.exception.existing_id, self.winners[0].id)
        self.loser_session.expire_all()
        beta = self.loser_session.get(Company, beta.id)
        self.assertEqual((beta.name, beta.normalized_name), ("Beta", "beta"))
        self.assertEqual(self.company_count(), 2)


if __name__ == "__main__":
    unittest.main()
