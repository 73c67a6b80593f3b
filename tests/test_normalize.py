import unittest

from tracker.core.normalize import (
    LEGAL_SUFFIXES,
    normalize,
    normalize_company_name,
    normalize_source_name,
    normalizer_for,
)

SAMPLES = [
    "",
    "   ",
    "...",
    "Google",
    "Google LLC",
    "google inc.",
    "GOOGLE, Inc",
    "Acme Corp. Ltd.",
    "Acme (Inc)",
    "Acme i.n.c",
    "Acme _inc",
    "Procter & Gamble Co.",
    "Société Générale S.A.",
    "Foo Group Holdings International",
    "Co.",
    "inc inc inc inc",
    "  ACME   Inc  ",
    "Data, Inc.",
    "Tab\tSeparated\nName Ltd",
    "Costco",
    "İstanbul Holdings",
]


class CompanyNormalizationTests(unittest.TestCase):
    def test_legal_suffix_is_stripped(self):
        self.assertEqual(normalize("Google LLC"), normalize("google"))
        self.assertEqual(normalize("Google LLC"), "google")

    def test_compound_suffixes_need_several_passes(self):
        self.assertEqual(normalize("Acme Corp. Ltd."), normalize("acme"))
        self.assertEqual(normalize("Foo Group Holdings International"), "foo")

    def test_punctuation_before_suffix(self):
        self.assertEqual(normalize("Data, Inc."), normalize("Data Inc"))
        self.assertEqual(normalize("GOOGLE, Inc"), "google")

    def test_case_and_whitespace_insensitive(self):
        self.assertEqual(normalize("  ACME   Inc  "), normalize("acme"))
        self.assertEqual(normalize("Tab\tSeparated\nName Ltd"), "tab separated name")

    def test_dotted_abbreviations(self):
        self.assertEqual(normalize("Acme L.L.C."), "acme")
        self.assertEqual(normalize("Acme P.L.L.C."), "acme")
        self.assertEqual(normalize("Acme L.L.P."), "acme")
        self.assertEqual(normalize("Siemens A.G."), "siemens")

    def test_european_suffixes(self):
        self.assertEqual(normalize("Siemens AG"), "siemens")
        self.assertEqual(normalize("Bosch GmbH"), "bosch")
        self.assertEqual(normalize("Philips N.V."), "philips")
        self.assertEqual(normalize("Société Générale S.A."), "société générale")

    def test_suffix_must_be_a_whole_word(self):
        self.assertEqual(normalize("Costco"), "costco")
        self.assertEqual(normalize("Tesco PLC"), "tesco")
        self.assertEqual(normalize("Nasa"), "nasa")

    def test_suffix_exposed_by_punctuation_removal(self):
        self.assertEqual(normalize("Acme (Inc)"), "acme")
        self.assertEqual(normalize("Acme-Inc"), "acme")

    def test_remaining_punctuation_removed(self):
        self.assertEqual(normalize("Procter & Gamble Co."), "procter gamble")
        self.assertEqual(normalize("Yahoo!"), "yahoo")

    def test_empty_results_are_valid(self):
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize("..."), "")
        self.assertEqual(normalize("Co."), "")
        self.assertEqual(normalize("inc inc inc inc"), "")
        self.assertEqual(normalize(None), "")

    def test_idempotent(self):
        for raw in SAMPLES:
            with self.subTest(raw=raw):
                once = normalize(raw)
                self.assertEqual(normalize(once), once)

    def test_deterministic(self):
        for raw in SAMPLES:
            with self.subTest(raw=raw):
                self.assertEqual(normalize(raw), normalize(raw))

    def test_long_adversarial_input_terminates(self):
        raw = "acme " + " ".join(["inc."] * 500)
        self.assertEqual(normalize(raw), "acme")

    def test_suffix_table_is_immutable(self):
        self.assertIsInstance(LEGAL_SUFFIXES, tuple)
        self.assertIn("gmbh", LEGAL_SUFFIXES)
        self.assertIn("l.l.c.", LEGAL_SUFFIXES)


class SourceNormalizationTests(unittest.TestCase):
    def test_folds_case_and_whitespace_only(self):
        self.assertEqual(normalize_source_name("  LinkedIn   Jobs "), "linkedin jobs")

    def test_keeps_legal_words_and_punctuation(self):
        self.assertEqual(normalize_source_name("LinkedIn Group"), "linkedin group")
        self.assertEqual(normalize_source_name("Indeed, Inc."), "indeed, inc.")

    def test_idempotent(self):
        for raw in SAMPLES:
            with self.subTest(raw=raw):
                once = normalize_source_name(raw)
                self.assertEqual(normalize_source_name(once), once)


class NormalizerForTests(unittest.TestCase):
    def test_rule_per_kind(self):
        self.assertIs(normalizer_for("company"), normalize_company_name)
        self.assertIs(normalizer_for("source"), normalize_source_name)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            normalizer_for("contact")


if __name__ == "__main__":
    unittest.main()
