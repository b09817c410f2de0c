import json
import math
import re
import string
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from prob_quiz.errors import UnresolvableAnswer


MCQ = "mcq"
NUMERIC = "numeric"

Number = Union[int, float]

_OPTION_LETTERS = string.ascii_uppercase
_INTEGER_REGEX = re.compile(r"[+-]?\d+")

# Display fields tried, in order, when an option arrives as an object.
_OPTION_DISPLAY_FIELDS = ("text", "label", "value", "content", "title", "name")

_ID_FIELDS = ("id", "qid")
_SECTION_FIELDS = ("section_id", "section")
_CONTENT_FIELDS = ("content_md", "content", "question", "text", "title")
_ANSWER_FIELDS = ("answer", "correctAnswer", "correct_answer")
_EXPLANATION_FIELDS = ("explanation_md", "explanation", "rationale")


@dataclass(frozen=True)
class AnswerKey:
    """The answer-bearing part of a question, kept server side for checking."""
    type: str
    options: Dict[str, str]
    answer: Union[str, Number]
    explanation: str = ""


@dataclass(frozen=True)
class Question:
    """A canonical, schema-valid question."""
    id: str
    section_id: str
    title: str
    content: str
    type: str
    options: Dict[str, str] = field(default_factory=dict)
    answer: Union[str, Number] = ""
    explanation: str = ""

    def answer_key(self) -> AnswerKey:
        return AnswerKey(type=self.type, options=dict(self.options), answer=self.answer, explanation=self.explanation)

    def public_dict(self) -> Dict[str, Any]:
        """Question fields safe to hand to the quiz taker (no answer, no explanation)."""
        return {
            "id": self.id,
            "section_id": self.section_id,
            "title": self.title,
            "content": self.content,
            "type": self.type,
            "options": dict(self.options),
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_present(value: Any) -> bool:
    """Present means non-null and, for strings and containers, non-empty."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    return True


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if _is_present(value):
            return value
    return None


# PUBLIC_INTERFACE
def to_text(value: Any) -> str:
    """
    Coerce an arbitrary JSON value to display text.

    Objects yield their first string/number display field; anything else
    falls back to its JSON rendering.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if _is_number(value):
        return str(value)
    if isinstance(value, dict):
        for key in _OPTION_DISPLAY_FIELDS:
            candidate = value.get(key)
            if isinstance(candidate, str) or _is_number(candidate):
                return str(candidate)
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


# PUBLIC_INTERFACE
def normalize_options(raw_options: Any) -> Dict[str, str]:
    """
    Turn a list or mapping of options into an ordered {letter: text} mapping.

    Lists get letters A, B, C, ... in order. Mapping keys are uppercased and
    kept. Any other shape yields an empty mapping.
    """
    if isinstance(raw_options, (list, tuple)):
        return {
            letter: to_text(option)
            for letter, option in zip(_OPTION_LETTERS, raw_options)
        }
    if isinstance(raw_options, dict):
        options: Dict[str, str] = {}
        for key, option in raw_options.items():
            options[str(key).strip().upper()] = to_text(option)
        return options
    return {}


def _as_letter(value: Any, options: Mapping[str, str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    key = value.strip().upper()
    return key if key in options else None


def _as_index(value: Any, options: Mapping[str, str]) -> Optional[str]:
    if not options:
        return None
    if _is_number(value):
        if isinstance(value, float) and not value.is_integer():
            return None
        index = int(value)
    elif isinstance(value, str) and _INTEGER_REGEX.fullmatch(value.strip()):
        index = int(value.strip())
    else:
        return None
    index = max(0, min(index, len(options) - 1))
    return list(options)[index]


def _as_option_text(value: Any, options: Mapping[str, str]) -> Optional[str]:
    if not (isinstance(value, str) or _is_number(value)):
        return None
    wanted = to_text(value).strip()
    for key, text in options.items():
        if text.strip() == wanted:
            return key
    return None


_CHOICE_RESOLVERS = (_as_letter, _as_index, _as_option_text)


# PUBLIC_INTERFACE
def resolve_choice(value: Any, options: Mapping[str, str]) -> Optional[str]:
    """
    Map an answer given as a letter, a zero-based index or the literal option
    text onto an option key. Tried in that order; first hit wins.

    Integer indices are clamped into the option range. Returns None when no
    attempt resolves. Both question normalization and answer checking go
    through this function, so the two sides always agree.
    """
    for resolver in _CHOICE_RESOLVERS:
        key = resolver(value, options)
        if key is not None:
            return key
    return None


# PUBLIC_INTERFACE
def coerce_number(value: Any) -> Optional[Number]:
    """Return a finite int/float for numbers and numeric strings, else None."""
    if _is_number(value):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if _INTEGER_REGEX.fullmatch(text):
            return int(text)
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


# PUBLIC_INTERFACE
def normalize_question(raw: Any, fallback_section_id: str, positional_index: int) -> Question:
    """
    Build a canonical Question from one loosely-typed candidate record.

    Args:
        raw: A candidate question object taken from model output.
        fallback_section_id: Section used when the candidate names none.
        positional_index: Zero-based position of the candidate in its batch,
            used to synthesize an id (`q<N>`, one-based) when none is given.

    Returns:
        Question: The canonical record. Pure and deterministic.

    Raises:
        UnresolvableAnswer: if the candidate is not an object, or its answer
            cannot be mapped onto an option key (mcq) or a number (numeric).
    """
    if not isinstance(raw, dict):
        raise UnresolvableAnswer(f"candidate {positional_index} is not an object")

    raw_id = _first_present(raw, _ID_FIELDS)
    question_id = to_text(raw_id).strip() if raw_id is not None else ""
    if not question_id:
        question_id = f"q{positional_index + 1}"

    section = _first_present(raw, _SECTION_FIELDS)
    section_id = to_text(section).strip() if section is not None else fallback_section_id

    content = _first_present(raw, _CONTENT_FIELDS)
    explanation = _first_present(raw, _EXPLANATION_FIELDS)
    title = raw.get("title")
    raw_answer = _first_present(raw, _ANSWER_FIELDS)

    question_type = NUMERIC if raw.get("type") == NUMERIC else MCQ

    if question_type == NUMERIC:
        options: Dict[str, str] = {}
        answer = coerce_number(raw_answer)
        if answer is None:
            raise UnresolvableAnswer(f"numeric answer {raw_answer!r} is not a number")
    else:
        options = normalize_options(raw.get("options"))
        answer = resolve_choice(raw_answer, options) if raw_answer is not None else None
        if answer is None:
            raise UnresolvableAnswer(
                f"answer {raw_answer!r} matches no option key, index or text"
            )

    return Question(
        id=question_id,
        section_id=section_id,
        title=to_text(title),
        content=to_text(content),
        type=question_type,
        options=options,
        answer=answer,
        explanation=to_text(explanation),
    )
