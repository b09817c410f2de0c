"""
API package initialization.

Exports shared schema models for external use.
"""

# Re-export commonly used schema models
from .schemas import (  # noqa: F401
    CheckAnswerRequest,
    CheckAnswerResponse,
    ErrorDetail,
    GenerateRequest,
    GenerateResponse,
    PublicQuestion,
    SectionIn,
)
