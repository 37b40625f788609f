"""Schemas for the JSON objects returned by the reviewer model.

Every response is validated against one of these models. A response that does
not fit is treated as a failed call, never coerced into shape.
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .enums import AIStatus, AutomationReadiness


def _coerce_percentage_int(value: Any, field_name: str) -> int:
    try:
        val = int(round(float(value)))
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be an integer between 0 and 100")
    if val < 0 or val > 100:
        raise ValueError(f"{field_name} must be between 0 and 100")
    return val


class _ReviewModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AIReviewResult(_ReviewModel):
    """Verdict for one test case from a bulk review call.

    Contract:
    - test_id: non-empty, matches a row in the submitted batch
    - status: PASS and ERROR are kept; any other verdict becomes NEEDS_REWRITE
    - score / confidence: integers 0-100 (floats are rounded)
    - reason: short reviewer rationale
    """

    test_id: str
    status: AIStatus
    score: int
    reason: str = ""
    confidence: int

    @field_validator("test_id", mode="before")
    def _strip_id(cls, value: object) -> str:
        result = str(value or "").strip()
        if not result:
            raise ValueError("testId must not be empty")
        return result

    @field_validator("status", mode="before")
    def _normalise_status(cls, value: object) -> AIStatus:
        if isinstance(value, AIStatus):
            value = value.value
        text = str(value or "").strip().upper().replace(" ", "_")
        if text == AIStatus.PASS.value:
            return AIStatus.PASS
        if text == AIStatus.ERROR.value:
            return AIStatus.ERROR
        return AIStatus.NEEDS_REWRITE

    @field_validator("score", mode="before")
    def _validate_score(cls, value: Any) -> int:
        return _coerce_percentage_int(value, "score")

    @field_validator("confidence", mode="before")
    def _validate_confidence(cls, value: Any) -> int:
        return _coerce_percentage_int(value, "confidence")

    @field_validator("reason", mode="before")
    def _strip_reason(cls, value: object) -> str:
        return str(value or "").strip()

    @classmethod
    def failed(cls, test_id: str, reason: str) -> "AIReviewResult":
        """Build the placeholder result recorded for rows of a failed batch."""
        return cls(
            test_id=test_id,
            status=AIStatus.ERROR,
            score=0,
            reason=reason,
            confidence=0,
        )


class ReviewResultsEnvelope(_ReviewModel):
    """Bulk review results wrapped as ``{"results": [...]}``.

    JSON mode sometimes returns the array under a ``results`` key instead of
    bare; both shapes are accepted.
    """

    results: List[AIReviewResult]


class AIRewriteResult(_ReviewModel):
    """Rewrite suggestion for a single low-confidence test case."""

    test_id: str
    rewritten_description: str
    rewritten_expected: str
    improvement_reason: str

    @field_validator(
        "test_id",
        "rewritten_description",
        "rewritten_expected",
        "improvement_reason",
        mode="before",
    )
    def _strip_strings(cls, value: object) -> str:
        return str(value or "").strip()

    @model_validator(mode="after")
    def final_checks(self) -> "AIRewriteResult":
        if not self.test_id:
            raise ValueError("testId must not be empty")
        if not self.rewritten_description:
            raise ValueError("rewrittenDescription must not be empty")
        if not self.rewritten_expected:
            raise ValueError("rewrittenExpected must not be empty")
        return self


class AIModuleSummary(_ReviewModel):
    """Roll-up of a completed analysis run."""

    average_score: float = Field(ge=0, le=100)
    rewrite_percentage: float = Field(ge=0, le=100)
    automation_readiness: AutomationReadiness
    main_issues: List[str] = Field(default_factory=list)

    @field_validator("automation_readiness", mode="before")
    def _normalise_readiness(cls, value: object) -> AutomationReadiness:
        if isinstance(value, AutomationReadiness):
            return value
        text = str(value or "").strip().capitalize()
        try:
            return AutomationReadiness(text)
        except ValueError as exc:
            raise ValueError(
                f"automationReadiness must be one of {AutomationReadiness.all_values()}"
            ) from exc

    @field_validator("main_issues", mode="before")
    def _normalise_issues(cls, value: object) -> List[str]:
        if value is None:
            return []
        if isinstance(value, list):
            issues = [str(x).strip() for x in value if str(x).strip()]
        else:
            issues = [str(value).strip()]
        return issues[:5]
