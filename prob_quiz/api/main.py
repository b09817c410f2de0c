import logging
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from prob_quiz.api.schemas import (
    CheckAnswerRequest,
    CheckAnswerResponse,
    GenerateRequest,
    GenerateResponse,
    PublicQuestion,
)
from prob_quiz.config import get_settings
from prob_quiz.errors import InvalidModelOutput, QuestionNotFound, QuizServiceError, UpstreamUnavailable
from prob_quiz.services.completion_provider import CompletionProvider, DeepSeekCompletionProvider
from prob_quiz.services.question_generator import check_answer, generate_questions
from prob_quiz.storage.question_store import QuestionStore

# Load environment variables from a .env file if present
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "System", "description": "System and service endpoints"},
    {"name": "Questions", "description": "Question generation and answer checking endpoints"},
]

app = FastAPI(
    title="Probability Quiz Backend",
    description="Generates probability-theory practice questions with a language model and checks answers.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# PUBLIC_INTERFACE
def get_store() -> QuestionStore:
    """Return the process-wide question store."""
    return _get_store_singleton()


@lru_cache(maxsize=1)
def _get_store_singleton() -> QuestionStore:
    return QuestionStore(ttl_seconds=settings.question_ttl_seconds, max_batches=settings.max_batches)


# PUBLIC_INTERFACE
def get_provider() -> CompletionProvider:
    """Return the process-wide completion provider."""
    return _get_provider_singleton()


@lru_cache(maxsize=1)
def _get_provider_singleton() -> CompletionProvider:
    return DeepSeekCompletionProvider(settings)


def _error(status_code: int, exc: QuizServiceError) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": exc.code, "message": str(exc)})


@app.get("/health", summary="Health Check", tags=["System"])
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON payload with an ok flag and the current UTC time.
    """
    return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}


@app.post(
    "/gen-questions",
    response_model=GenerateResponse,
    summary="Generate practice questions",
    description="Asks the language model for probability questions, normalizes them and keeps the answers server side.",
    tags=["Questions"],
)
async def gen_questions(
    body: GenerateRequest,
    store: QuestionStore = Depends(get_store),
    provider: CompletionProvider = Depends(get_provider),
) -> GenerateResponse:
    """
    Generate a batch of questions.

    Returns:
        GenerateResponse: batch id and questions, answers withheld.

    Raises:
        HTTPException 502 if the provider failed or its output held no valid questions.
    """
    sections = [s.model_dump(exclude_none=True) for s in body.sections]
    try:
        batch = await generate_questions(provider, store, sections, body.count, body.language)
    except (UpstreamUnavailable, InvalidModelOutput) as e:
        logger.error("gen-questions failed: %s", e.code)
        raise _error(status.HTTP_502_BAD_GATEWAY, e) from e

    return GenerateResponse(
        batchId=batch.batch_id,
        questions=[PublicQuestion(**q.public_dict()) for q in batch.questions],
    )


@app.post(
    "/check-answer",
    response_model=CheckAnswerResponse,
    response_model_exclude_none=True,
    summary="Check an answer",
    description="Grades an answer to a previously generated question and reveals the correct answer.",
    tags=["Questions"],
)
def check_answer_endpoint(
    body: CheckAnswerRequest,
    store: QuestionStore = Depends(get_store),
) -> CheckAnswerResponse:
    """
    Check one answer.

    Raises:
        HTTPException 404 if the batch or question is unknown or expired.
    """
    try:
        result = check_answer(store, body.batchId, body.questionId, body.userAnswer, body.confidence)
    except QuestionNotFound as e:
        raise _error(status.HTTP_404_NOT_FOUND, e) from e

    return CheckAnswerResponse(
        correct=result.correct,
        correctAnswer=result.correct_answer,
        explanation=result.explanation,
        brier=result.brier,
    )
