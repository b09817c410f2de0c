from typing import Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr


# PUBLIC_INTERFACE
class SectionIn(BaseModel):
    """A topic section the caller wants questions for. Extra keys are passed to the model as-is."""
    model_config = ConfigDict(extra="allow")

    id: Optional[Union[str, int]] = Field(default=None, description="Section identifier, e.g. 'bayes'.")
    title: Optional[str] = Field(default=None, description="Human readable section title.")


# PUBLIC_INTERFACE
class GenerateRequest(BaseModel):
    """Input model for generating a batch of practice questions."""
    sections: List[SectionIn] = Field(default_factory=list, description="Sections to draw questions from.")
    count: Optional[int] = Field(default=None, description="Requested number of questions (clamped to 1-12, default 6).")
    language: str = Field(default="en", description="Language the questions should be written in.")


# PUBLIC_INTERFACE
class PublicQuestion(BaseModel):
    """A question as shown to the quiz taker. The answer is never included."""
    id: str = Field(..., description="Identifier, unique within the batch.")
    section_id: str = Field(..., description="Topic/section identifier.")
    title: str = Field(..., description="Short title, may be empty.")
    content: str = Field(..., description="Question body (markdown).")
    type: Literal["mcq", "numeric"] = Field(..., description="Question type.")
    options: Dict[str, str] = Field(..., description="Letter key to option text; empty for numeric questions.")


# PUBLIC_INTERFACE
class GenerateResponse(BaseModel):
    """A freshly generated batch."""
    batchId: str = Field(..., description="Opaque batch identifier, needed to check answers.")
    questions: List[PublicQuestion] = Field(..., description="Normalized questions without answers.")


# PUBLIC_INTERFACE
class CheckAnswerRequest(BaseModel):
    """Input model for grading one answer."""
    batchId: str = Field(..., description="Batch identifier returned by /gen-questions.")
    questionId: str = Field(
        ...,
        validation_alias=AliasChoices("questionId", "qid"),
        description="Question identifier within the batch.",
    )
    userAnswer: Union[StrictInt, StrictFloat, StrictStr] = Field(
        ..., description="Letter, zero-based index, option text or number. Booleans are rejected."
    )
    confidence: Optional[Union[StrictInt, StrictFloat]] = Field(
        default=None, description="Optional self-reported probability of being right, 0..1 (JSON number)."
    )


# PUBLIC_INTERFACE
class CheckAnswerResponse(BaseModel):
    """Verdict for one answer; reveals the correct answer and explanation."""
    correct: bool = Field(..., description="Whether the answer was right.")
    correctAnswer: Union[int, float, str] = Field(..., description="Canonical answer: letter key or number.")
    explanation: str = Field(..., description="Explanation (markdown), may be empty.")
    brier: Optional[float] = Field(default=None, description="Brier score, present only when confidence was given.")


# PUBLIC_INTERFACE
class ErrorDetail(BaseModel):
    """Shape of the `detail` field of error responses."""
    code: str = Field(..., description="Machine-readable error code.")
    message: str = Field(..., description="Short diagnostic.")
