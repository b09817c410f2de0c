import json
import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from prob_quiz.errors import (
    InvalidModelOutput,
    NoJsonFound,
    UnresolvableAnswer,
    UpstreamError,
    UpstreamUnavailable,
)
from prob_quiz.services.answer_checker import brier_score, is_correct
from prob_quiz.services.completion_provider import CompletionProvider
from prob_quiz.services.json_extractor import extract_json
from prob_quiz.services.normalizer import Number, Question, normalize_question
from prob_quiz.storage.question_store import QuestionStore

logger = logging.getLogger(__name__)


MIN_COUNT = 1
MAX_COUNT = 12
DEFAULT_COUNT = 6

# Keep diagnostics short; provider bodies can be large.
_DIAGNOSTIC_CHARS = 200
_LOG_HEAD_CHARS = 500

# Keys that make a bare object look like a single question rather than a batch.
_QUESTION_MARKERS = ("options", "answer", "correctAnswer", "question", "content", "content_md", "text")

SYSTEM_PROMPT = "\n".join([
    "You generate practice problems in probability theory.",
    "Reply with JSON ONLY, following the example below. No prose, no comments, nothing else.",
    "Response schema:",
    "{",
    '  "questions": [',
    "    {",
    '      "id": "q1",',
    '      "section_id": "bayes",',
    '      "title": "Short title",',
    '      "question": "Problem statement (markdown allowed)",',
    '      "type": "mcq",',
    '      "options": { "A": "choice", "B": "choice", "C": "choice", "D": "choice" },',
    '      "answer": "A",',
    '      "explanation_md": "Short explanation"',
    "    }",
    "  ]",
    "}",
    'For "type": "numeric" omit "options" and give the number as "answer".',
    "Answer strictly following the example!",
])


@dataclass(frozen=True)
class GeneratedBatch:
    batch_id: str
    questions: List[Question]
    dropped: int = 0


@dataclass(frozen=True)
class CheckResult:
    correct: bool
    correct_answer: Union[str, Number]
    explanation: str
    brier: Optional[float] = None


# PUBLIC_INTERFACE
def clamp_count(count: Optional[int]) -> int:
    """Default to 6 when missing or non-positive, otherwise clamp into 1..12."""
    if count is None or isinstance(count, bool) or count <= 0:
        return DEFAULT_COUNT
    return max(MIN_COUNT, min(int(count), MAX_COUNT))


def build_user_prompt(sections: Sequence[Dict[str, Any]], count: int, language: str) -> str:
    return "\n".join([
        f"Language: {language}.",
        f"Generate {count} questions. Sections:",
        json.dumps(list(sections), ensure_ascii=False),
        "Topics: basic probability, Bayes, expected value, tail risks, intuition traps.",
    ])


def _fallback_section_id(sections: Sequence[Dict[str, Any]]) -> str:
    for section in sections:
        section_id = section.get("id") if isinstance(section, dict) else None
        if section_id is not None and str(section_id).strip():
            return str(section_id).strip()
    return ""


def _candidates_from(data: Dict[str, Any]) -> List[Any]:
    """Pull the list of candidate questions out of the extracted object."""
    questions = data.get("questions")
    if isinstance(questions, list):
        return questions
    if any(marker in data for marker in _QUESTION_MARKERS):
        return [data]
    return []


def _unique_id(question: Question, position: int, taken: set) -> Question:
    if question.id not in taken:
        return question
    new_id = f"q{position + 1}"
    while new_id in taken:
        new_id = f"q-{uuid.uuid4().hex[:8]}"
    return replace(question, id=new_id)


# PUBLIC_INTERFACE
def normalize_batch(candidates: Sequence[Any], fallback_section_id: str) -> Tuple[List[Question], int]:
    """
    Normalize every candidate, dropping the ones that fail.

    Returns:
        (questions, dropped): surviving questions in input order, with ids
        made unique within the batch, and the number of dropped candidates.
    """
    questions: List[Question] = []
    taken: set = set()
    dropped = 0
    for position, raw in enumerate(candidates):
        try:
            question = normalize_question(raw, fallback_section_id, position)
        except UnresolvableAnswer as e:
            dropped += 1
            logger.warning("Dropping candidate %d: %s", position, e)
            continue
        question = _unique_id(question, position, taken)
        taken.add(question.id)
        questions.append(question)
    return questions, dropped


# PUBLIC_INTERFACE
async def generate_questions(
    provider: CompletionProvider,
    store: QuestionStore,
    sections: Sequence[Dict[str, Any]],
    count: Optional[int] = None,
    language: str = "en",
) -> GeneratedBatch:
    """
    Ask the provider for a batch of questions and keep their answer keys.

    The store is written only after the whole response has been normalized,
    so a failed request never leaves a partial batch behind.

    Raises:
        UpstreamUnavailable: the provider call failed or timed out.
        InvalidModelOutput: no JSON in the output, or no question survived.
    """
    count = clamp_count(count)
    logger.info(
        "gen-questions: sections=%s count=%d language=%s",
        [s.get("id") for s in sections if isinstance(s, dict)], count, language,
    )

    try:
        text = await provider.complete(SYSTEM_PROMPT, build_user_prompt(sections, count, language))
    except UpstreamError as e:
        logger.warning("Provider failed: %s (status=%s)", e, e.status)
        message = str(e)
        if e.body:
            message = f"{message}: {e.body[:_DIAGNOSTIC_CHARS]}"
        raise UpstreamUnavailable(message, status=e.status) from e

    logger.info("Provider raw body (head) = %s", text[:_LOG_HEAD_CHARS])

    try:
        data = extract_json(text)
    except NoJsonFound as e:
        raise InvalidModelOutput("model output contained no JSON object") from e

    questions, dropped = normalize_batch(_candidates_from(data), _fallback_section_id(sections))
    if dropped:
        logger.warning("Dropped %d of %d candidate questions", dropped, dropped + len(questions))
    if not questions:
        raise InvalidModelOutput("model output contained no valid questions")

    batch_id = store.put({q.id: q.answer_key() for q in questions})
    logger.info("Cached %d questions in batch %s", len(questions), batch_id)
    return GeneratedBatch(batch_id=batch_id, questions=questions, dropped=dropped)


# PUBLIC_INTERFACE
def check_answer(
    store: QuestionStore,
    batch_id: str,
    question_id: str,
    user_answer: Any,
    confidence: Optional[float] = None,
) -> CheckResult:
    """
    Grade a user's answer against a stored question.

    Raises:
        QuestionNotFound: the batch or the question is unknown or expired.
    """
    key = store.get(batch_id, question_id)
    correct = is_correct(key, user_answer)
    return CheckResult(
        correct=correct,
        correct_answer=key.answer,
        explanation=key.explanation,
        brier=brier_score(confidence, correct),
    )
