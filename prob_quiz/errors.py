from typing import Optional


class QuizServiceError(Exception):
    """Base error for the quiz service. `code` is stable and machine-readable."""

    code = "quiz_service_error"


class NoJsonFound(QuizServiceError):
    """No parseable JSON object could be located in a block of text."""

    code = "no_json_found"


class UnresolvableAnswer(QuizServiceError):
    """A candidate question's answer could not be mapped to a canonical key."""

    code = "unresolvable_answer"


class UpstreamError(QuizServiceError):
    """The completion provider answered with a non-success response."""

    code = "upstream_error"

    def __init__(self, status: Optional[int], body: str = "", message: Optional[str] = None) -> None:
        super().__init__(message or f"provider returned status {status}")
        self.status = status
        self.body = body or ""


class ProviderTimeout(UpstreamError):
    """The completion provider did not answer within the configured interval."""

    code = "provider_timeout"

    def __init__(self, body: str = "") -> None:
        super().__init__(None, body, "provider timed out")


class UpstreamUnavailable(QuizServiceError):
    """Generation failed because the provider call failed."""

    code = "upstream_unavailable"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class InvalidModelOutput(QuizServiceError):
    """The provider output held no usable questions."""

    code = "invalid_model_output"


class QuestionNotFound(QuizServiceError):
    """Unknown batch, expired batch or unknown question id. Deliberately one signal."""

    code = "question_not_found"
