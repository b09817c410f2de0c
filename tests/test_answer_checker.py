import unittest

from prob_quiz.services.answer_checker import brier_score, is_correct
from prob_quiz.services.normalizer import Question


def _mcq() -> Question:
    return Question(
        id="q1",
        section_id="bayes",
        title="",
        content="P(A|B)?",
        type="mcq",
        options={"A": "0.1", "B": "0.5", "C": "0.9"},
        answer="B",
        explanation="because...",
    )


def _numeric() -> Question:
    return Question(id="q2", section_id="ev", title="", content="E[X]?", type="numeric", answer=0.5)


class TestIsCorrectMcq(unittest.TestCase):
    def test_equivalent_encodings_are_correct(self):
        q = _mcq()
        for answer in ("B", "b", " B ", 1, "1", "0.5", 0.5):
            with self.subTest(answer=answer):
                self.assertTrue(is_correct(q, answer))

    def test_other_answers_are_wrong(self):
        q = _mcq()
        for answer in ("A", "c", 0, 2, "0.9", "no idea", "", None, True, [1]):
            with self.subTest(answer=answer):
                self.assertFalse(is_correct(q, answer))

    def test_works_on_answer_key(self):
        self.assertTrue(is_correct(_mcq().answer_key(), "b"))


class TestIsCorrectNumeric(unittest.TestCase):
    def test_exact_match(self):
        q = _numeric()
        self.assertTrue(is_correct(q, "0.5"))
        self.assertTrue(is_correct(q, 0.5))
        self.assertTrue(is_correct(q, " 0.5"))

    def test_no_tolerance(self):
        self.assertFalse(is_correct(_numeric(), "0.50001"))

    def test_not_a_number(self):
        self.assertFalse(is_correct(_numeric(), "half"))
        self.assertFalse(is_correct(_numeric(), None))

    def test_integer_answer(self):
        q = Question(id="q3", section_id="s", title="", content="", type="numeric", answer=3)
        self.assertTrue(is_correct(q, "3"))
        self.assertTrue(is_correct(q, 3.0))


class TestBrierScore(unittest.TestCase):
    def test_scores(self):
        self.assertAlmostEqual(brier_score(0.9, True), 0.01)
        self.assertAlmostEqual(brier_score(0.9, False), 0.81)
        self.assertEqual(brier_score(0, False), 0.0)

    def test_invalid_confidence(self):
        self.assertIsNone(brier_score(None, True))
        self.assertIsNone(brier_score(1.5, True))
        self.assertIsNone(brier_score(-0.1, True))
        self.assertIsNone(brier_score("0.5", True))
        self.assertIsNone(brier_score(True, True))


if __name__ == "__main__":
    unittest.main()
