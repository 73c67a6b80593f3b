import unittest

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from tracker.db.models import Company, Source, model_for
from tracker.db.session import make_engine


class ReferenceEntityModelTests(unittest.TestCase):
    def setUp(self):
        engine = make_engine("sqlite:///:memory:", create_schema=True)
        self.Session = sessionmaker(bind=engine)

    def test_normalized_name_follows_name(self):
        company = Company(name="Acme Corp. Ltd.")
        self.assertEqual(company.normalized_name, "acme")

        company.name = "Beta GmbH"
        self.assertEqual(company.normalized_name, "beta")

    def test_source_uses_its_own_rule(self):
        source = Source(name="  LinkedIn   Group ")
        self.assertEqual(source.normalized_name, "linkedin group")
        self.assertEqual(source.name, "  LinkedIn   Group ")

    def test_normalized_name_cannot_be_set_on_its_own(self):
        with self.assertRaises(ValueError):
            Company(name="Acme Inc", normalized_name="zzz")

        beta = Company(name="Beta")
        with self.assertRaises(ValueError):
            beta.normalized_name = "acme"
        self.assertEqual((beta.name, beta.normalized_name), ("Beta", "beta"))

    def test_matching_normalized_name_is_accepted(self):
        company = Company(name="Acme Inc", normalized_name="acme")
        company.normalized_name = "acme"
        self.assertEqual(company.normalized_name, "acme")

        with self.Session() as session:
            session.add(company)
            session.commit()
            stored = session.get(Company, company.id)
            self.assertEqual(stored.normalized_name, "acme")

    def test_unique_constraint_is_last_resort(self):
        with self.Session() as session:
            session.add(Company(name="Acme Inc"))
            session.commit()

            session.add(Company(name="ACME"))
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_model_for(self):
        self.assertIs(model_for("company"), Company)
        self.assertIs(model_for("source"), Source)
        with self.assertRaises(ValueError):
            model_for("reminder")


if __name__ == "__main__":
    unittest.main()
