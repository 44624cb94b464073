"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from spreadsheet_translator.sheet_document import Domain, TargetLanguage
from spreadsheet_translator.utils.exceptions import ErrorCode


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class TextPair(BaseModel):
    """A source text together with its translation."""

    original: str = Field(..., description="Source text")
    translated: str = Field(..., description="Translated text")


class QualityCheckRequest(BaseModel):
    """Request model for the quality check endpoint."""

    pairs: list[TextPair] = Field(..., min_length=1, description="Pairs to score")
    domain: Domain = Field(
        default=Domain.TECHNICAL, description="Content domain used for tone checks"
    )
    language: TargetLanguage = Field(
        default=TargetLanguage.HINDI, description="Language of the translations"
    )


class QualityIssueModel(BaseModel):
    kind: str
    severity: str
    message: str
    suggestion: str | None = None
    original_text: str = ""
    translated_text: str = ""


class QualitySummary(BaseModel):
    total_issues: int
    critical_issues: int
    by_kind: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)


class QualityReportModel(BaseModel):
    """Scored issue report for one or more translations."""

    score: int = Field(..., ge=0, le=100, description="Quality score 0-100")
    label: str = Field(..., description="Human-readable score band")
    summary: QualitySummary
    issues: list[QualityIssueModel] = Field(default_factory=list)


class QualityCheckResponse(BaseModel):
    """Response model for the quality check endpoint."""

    report: QualityReportModel = Field(..., description="Aggregate report")
    pairs: list[QualityReportModel] = Field(
        default_factory=list, description="Per-pair reports in request order"
    )
    suggestions: list[str] = Field(
        default_factory=list, description="Actionable suggestions"
    )


class TemplateCreateRequest(BaseModel):
    """Request model for creating a prompt template."""

    name: str = Field(..., description="Display name")
    system_prompt: str = Field(..., description="System instruction")
    user_prompt: str = Field(
        ..., description="User instruction containing the {texts} placeholder"
    )


class TemplateUpdateRequest(BaseModel):
    """Request model for updating a prompt template. Omitted fields are kept."""

    name: str | None = None
    system_prompt: str | None = None
    user_prompt: str | None = None


class TemplateResponse(BaseModel):
    """Response model for a prompt template."""

    id: str
    name: str
    system_prompt: str
    user_prompt: str
    updated_at: datetime
    active: bool = Field(default=False, description="Whether prompts use it now")


class TemplateListResponse(BaseModel):
    templates: list[TemplateResponse]
    active_id: str | None = None


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    This model provides structured error responses with:
    - Human-readable error message
    - Machine-readable error code
    - Optional additional details for debugging
    - Optional request ID for correlation
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        """Create an ErrorDetail from an ErrorCode enum value."""
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
