from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urlparse

import structlog

from techtrend.config import GeminiConfig
from techtrend.models.summary import (
    GenerationOptions,
    SourceInfo,
    SummaryResult,
)
from techtrend.services import prompts
from techtrend.services.display_parser import SUMMARY_VERSION
from techtrend.services.exceptions import (
    GenerationError,
    GenerationExhaustedError,
    GenerationSkipped,
    QualityGateMiss,
    ResponseValidationError,
)
from techtrend.services.gemini import GeminiClient
from techtrend.services.post_processor import post_process_summaries
from techtrend.services.summary_parser import (
    MAX_TAGS,
    find_problems,
    parse_response,
    parse_summary_only,
)
from techtrend.services.summary_quality import check_summary_quality
from techtrend.services.tag_normalizer import infer_category, normalize_tags

logger = structlog.get_logger(__name__)

SleepFn = Callable[[float], None]

SKIP_MARKER = "__SKIP_SUMMARY_GENERATION__"
DETAILED_SUMMARY_SKIPPED = "__SKIP_DETAILED_SUMMARY__"

PDF_HEADER = "%PDF-"
PDF_EOF = "%%EOF"
PDF_PROBE_CHARS = 1024

LOW_SIGNAL_SOURCES = frozenset({"はてなブックマーク"})
LOW_SIGNAL_MAX_LENGTH = 300
SLIDE_HOSTS = ("speakerdeck.com", "slideshare.net", "docswell.com")

INSUFFICIENT_CONTENT_LENGTH = 100
SUMMARY_ONLY_MAX_LENGTH = 100
SUMMARY_ONLY_MAX_TOKENS = 20
SHORT_CONTENT_MAX_LENGTH = 500

RATE_LIMIT_SIGNATURES = ("429", "rate", "quota", "503")
RATE_LIMIT_DELAY_FACTOR = 3

TIER_SUMMARY_ONLY = "summary_only"
TIER_SHORT = "short"
TIER_FULL = "full"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    QUALITY_GATE_MISS = "quality_gate_miss"
    API_ERROR = "api_error"
    RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class PromptPlan:
    tier: str
    prompt: str
    skip_detailed_summary: bool = False


def _host(url: Optional[str]) -> str:
    if not url:
        return ""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_pdf(url: Optional[str], content: Optional[str]) -> bool:
    if url:
        try:
            path = urlparse(url).path
        except ValueError:
            path = ""
        if path.lower().endswith(".pdf"):
            return True
    if content:
        if PDF_HEADER in content[:PDF_PROBE_CHARS]:
            return True
        if PDF_EOF in content[-PDF_PROBE_CHARS:]:
            return True
    return False


def is_low_signal_slide(content: str, source_info: SourceInfo) -> bool:
    if source_info.source_name not in LOW_SIGNAL_SOURCES:
        return False
    if len(content) >= LOW_SIGNAL_MAX_LENGTH:
        return False
    host = _host(source_info.url)
    return any(host == slide or host.endswith("." + slide) for slide in SLIDE_HOSTS)


def preprocess_content(
    title: str,
    content: Optional[str],
    options: Optional[GenerationOptions] = None,
    source_info: Optional[SourceInfo] = None,
) -> str:
    """Return the prompt body for ``content`` or :data:`SKIP_MARKER`.

    PDFs and slide-deck stubs relayed by low-signal aggregators are never
    sent to the model. Very short content is replaced by a title-only body
    that tells the model not to speculate; overlong content is cut.
    """
    options = options or GenerationOptions()
    source_info = source_info or SourceInfo()
    raw = content or ""

    if is_pdf(source_info.url, raw):
        return SKIP_MARKER
    if is_low_signal_slide(raw, source_info):
        return SKIP_MARKER

    text = raw.strip()
    if len(text) < INSUFFICIENT_CONTENT_LENGTH:
        return prompts.insufficient_content_body(title, text)
    if len(text) > options.content_max_length:
        return text[: options.content_max_length]
    return text


def select_tier(original: str) -> str:
    length = len(original)
    if length <= SUMMARY_ONLY_MAX_LENGTH and len(original.split()) < SUMMARY_ONLY_MAX_TOKENS:
        return TIER_SUMMARY_ONLY
    if length <= SHORT_CONTENT_MAX_LENGTH:
        return TIER_SHORT
    return TIER_FULL


def build_prompt_plan(
    title: str,
    content: Optional[str],
    options: Optional[GenerationOptions] = None,
    source_info: Optional[SourceInfo] = None,
) -> PromptPlan:
    """Choose the prompt tier for an article; raises GenerationSkipped on a skip marker."""
    body = preprocess_content(title, content, options, source_info)
    if body == SKIP_MARKER:
        url = source_info.url if source_info else None
        reason = "pdf" if is_pdf(url, content) else "low_signal_slide"
        raise GenerationSkipped(reason)

    original = (content or "").strip()
    tier = select_tier(original)
    if tier == TIER_SUMMARY_ONLY:
        return PromptPlan(tier, prompts.build_summary_only_prompt(title, body), True)
    if tier == TIER_SHORT:
        return PromptPlan(tier, prompts.build_short_content_prompt(title, body, len(original)))
    return PromptPlan(tier, prompts.build_unified_prompt(title, body, len(original)))


def is_rate_limit_error(error: BaseException) -> bool:
    # "rate" also matches "generativelanguage.googleapis.com", so API error bodies
    # naming the host are treated as rate limited and get the longer backoff.
    message = str(error).lower()
    return any(signature in message for signature in RATE_LIMIT_SIGNATURES)


def classify_error(error: GenerationError) -> AttemptOutcome:
    if isinstance(error, QualityGateMiss):
        return AttemptOutcome.QUALITY_GATE_MISS
    if isinstance(error, ResponseValidationError):
        return AttemptOutcome.VALIDATION_ERROR
    if is_rate_limit_error(error):
        return AttemptOutcome.RATE_LIMITED
    return AttemptOutcome.API_ERROR


@dataclass
class RetryPolicy:
    """Attempt bookkeeping and backoff for one ``generate`` call.

    ``record`` moves the loop from Attempting to either Backoff (a delay is
    returned) or a terminal state. Rate-limited attempts always back off for
    three times the base delay, including after the last attempt.
    """

    max_retries: int
    retry_delay_seconds: float
    outcomes: list[AttemptOutcome] = field(default_factory=list)

    @classmethod
    def from_options(cls, options: GenerationOptions) -> RetryPolicy:
        return cls(options.max_retries, options.retry_delay_seconds)

    @property
    def attempts(self) -> int:
        return len(self.outcomes)

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_retries

    def is_last_attempt(self, attempt: int) -> bool:
        return attempt >= self.max_retries

    def record(self, outcome: AttemptOutcome) -> Optional[float]:
        """Record an outcome and return the delay before the next attempt, if any."""
        self.outcomes.append(outcome)
        if outcome is AttemptOutcome.SUCCESS:
            return None
        if outcome is AttemptOutcome.RATE_LIMITED:
            return self.retry_delay_seconds * RATE_LIMIT_DELAY_FACTOR
        if self.exhausted:
            return None
        return self.retry_delay_seconds


class SummaryGenerationService:
    """Generate summaries through the generative API with parse, post-process and quality gate."""

    def __init__(
        self,
        config: Optional[GeminiConfig] = None,
        *,
        client: Optional[GeminiClient] = None,
        session=None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        if client is None:
            client = GeminiClient(config or GeminiConfig.from_settings(), session=session)
        self._client = client
        self._sleep = sleep

    def generate(
        self,
        title: str,
        content: Optional[str],
        options: Optional[GenerationOptions] = None,
        source_info: Optional[SourceInfo] = None,
    ) -> SummaryResult:
        options = options or GenerationOptions()
        plan = build_prompt_plan(title, content, options, source_info)
        policy = RetryPolicy.from_options(options)
        last_error: Optional[GenerationError] = None

        for attempt in range(1, options.max_retries + 1):
            try:
                raw = self._client.generate_text(plan.prompt)
                if plan.skip_detailed_summary:
                    result = self._summary_only_result(raw)
                else:
                    result = self._full_result(raw, options, policy.is_last_attempt(attempt))
            except GenerationError as exc:
                last_error = exc
                outcome = classify_error(exc)
                delay = policy.record(outcome)
                # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
                logger.warning(
                    event="summary_attempt_failed",
                    operation="generation.attempt",
                    attempt=attempt,
                    outcome=outcome.value,
                    tier=plan.tier,
                    error=str(exc),
                    retry_in=delay,
                )
                if delay:
                    self._sleep(delay)
                continue

            policy.record(AttemptOutcome.SUCCESS)
            # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
            logger.info(
                event="summary_generated",
                operation="generation.success",
                attempt=attempt,
                tier=plan.tier,
                quality_score=result.quality_score,
                tags=len(result.tags),
            )
            return result

        raise GenerationExhaustedError(policy.attempts, [o.value for o in policy.outcomes], last_error)

    def _summary_only_result(self, raw: str) -> SummaryResult:
        summary, raw_tags = parse_summary_only(raw)
        if not summary:
            raise ResponseValidationError(["summary is missing"])
        tags = normalize_tags(raw_tags)[:MAX_TAGS]
        return SummaryResult(
            summary=summary,
            detailed_summary=DETAILED_SUMMARY_SKIPPED,
            tags=[tag.name for tag in tags],
            category=infer_category(tags),
            summary_version=SUMMARY_VERSION,
            quality_score=100,
        )

    def _full_result(
        self, raw: str, options: GenerationOptions, last_attempt: bool
    ) -> SummaryResult:
        parsed = parse_response(raw)
        problems = find_problems(parsed)
        if problems:
            raise ResponseValidationError(problems)

        processed = post_process_summaries(parsed.summary, parsed.detailed_summary)
        report = check_summary_quality(processed.summary, processed.detailed_summary)
        if report.score < options.min_quality_score:
            if not last_attempt:
                raise QualityGateMiss(report.score, options.min_quality_score)
            # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
            logger.warning(
                event="summary_below_quality_gate",
                operation="generation.quality_gate",
                quality_score=report.score,
                threshold=options.min_quality_score,
            )

        return SummaryResult(
            summary=processed.summary,
            detailed_summary=processed.detailed_summary,
            tags=list(parsed.tags),
            category=parsed.category,
            summary_version=SUMMARY_VERSION,
            quality_score=report.score,
        )


__all__ = [
    "AttemptOutcome",
    "DETAILED_SUMMARY_SKIPPED",
    "PromptPlan",
    "RetryPolicy",
    "SKIP_MARKER",
    "SummaryGenerationService",
    "build_prompt_plan",
    "classify_error",
    "is_pdf",
    "preprocess_content",
    "select_tier",
]
