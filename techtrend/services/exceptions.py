from __future__ import annotations

from typing import Sequence


class ExtractionError(Exception):
    """Base class for content extraction errors."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class FetchError(ExtractionError):
    """Network failure, timeout or non-success status while fetching a page."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class RateLimitedError(FetchError):
    """The origin kept answering 429 after the rate-limit budget was spent."""


class ParseError(ExtractionError):
    """Fetched markup could not be parsed into a document."""


class GenerationError(Exception):
    """Base class for summary generation errors."""


class ApiRequestError(GenerationError):
    """The generative API answered with a non-success status."""

    def __init__(self, status: int | str, body: str) -> None:
        super().__init__(f"API request failed: {status} - {body}")
        self.status = status
        self.body = body


class ResponseValidationError(GenerationError):
    """The model output does not satisfy the structural contract."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid summary format: " + "; ".join(self.problems))


class QualityGateMiss(GenerationError):
    """A well-formed summary scored below the configured threshold."""

    def __init__(self, score: int, threshold: int) -> None:
        super().__init__(f"Quality score {score} is below threshold {threshold}")
        self.score = score
        self.threshold = threshold


class GenerationExhaustedError(GenerationError):
    """Every generation attempt failed."""

    def __init__(
        self,
        attempts: int,
        outcomes: Sequence[str],
        last_error: BaseException | None = None,
    ) -> None:
        last_message = str(last_error) if last_error else "unknown error"
        super().__init__(
            f"Failed to generate summary after {attempts} attempts: {last_message}"
        )
        self.attempts = attempts
        self.outcomes = list(outcomes)
        self.last_error = last_error


class GenerationSkipped(GenerationError):
    """Content is deliberately not summarised (PDF, slide deck stub)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Summary generation skipped: {reason}")
        self.reason = reason


__all__ = [
    "ExtractionError",
    "FetchError",
    "RateLimitedError",
    "ParseError",
    "GenerationError",
    "ApiRequestError",
    "ResponseValidationError",
    "QualityGateMiss",
    "GenerationExhaustedError",
    "GenerationSkipped",
]
