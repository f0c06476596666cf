"""Analysis request/response schemas."""
from typing import Optional

from pydantic import BaseModel, Field

from mingjing.core.models import LifecycleState


class AnalyzePayload(BaseModel):
    """Text and/or a base64 image (data URL or raw base64) to analyze."""
    text: str = Field("", max_length=100_000, description="Workplace speech to analyze")
    image: Optional[str] = Field(None, description="Chat screenshot as a base64 data URL")

    model_config = {"json_schema_extra": {"example": {"text": "公司就是家，不要总是计较个人得失"}}}


class ExamplesResponse(BaseModel):
    """Sample phrases offered as click-to-fill input."""
    examples: list[str]


class SessionResponse(BaseModel):
    """Snapshot of one session's lifecycle and staged input."""
    sessionId: str
    state: LifecycleState
    canSubmit: bool = False
    hasImage: bool = False
    imagePending: bool = False


class ReportViewResponse(BaseModel):
    """The themed report card for a completed session."""
    sessionId: str
    title: str
    brand: str
    generatedOn: str
    riskLevel: str
    accentColor: str
    backgroundColor: str
    score: int = Field(..., ge=0, le=100)
    verdict: str
    tone: str
    summary: str
    details: list[str] = []
    advice: str
    pngFilename: str
    pdfFilename: str
