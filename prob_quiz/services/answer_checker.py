from typing import Any, Optional, Union

from prob_quiz.services.normalizer import (
    NUMERIC,
    AnswerKey,
    Question,
    coerce_number,
    resolve_choice,
)


# PUBLIC_INTERFACE
def is_correct(question: Union[Question, AnswerKey], user_answer: Any) -> bool:
    """
    Decide whether a user's answer matches a canonical question.

    Multiple choice answers go through the same letter / index / option text
    resolution used when the question was normalized. Numeric answers must be
    exactly equal to the stored value. An answer that cannot be interpreted is
    simply wrong; it never raises.
    """
    if question.type == NUMERIC:
        value = coerce_number(user_answer)
        return value is not None and value == question.answer

    key = resolve_choice(user_answer, question.options)
    if key is None:
        return False
    return key.upper() == str(question.answer).upper()


# PUBLIC_INTERFACE
def brier_score(confidence: Any, correct: bool) -> Optional[float]:
    """
    Squared error between the stated confidence and the outcome.

    Returns None unless confidence is a number within [0, 1].
    """
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return None
    if not 0 <= confidence <= 1:
        return None
    outcome = 1.0 if correct else 0.0
    return (confidence - outcome) ** 2
