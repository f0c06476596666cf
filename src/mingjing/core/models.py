"""Domain types shared by the analysis client, the lifecycle and the report renderer."""
import base64
import binascii
import re
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from mingjing import config
from mingjing.core.errors import InputValidationError

# Browsers hand us FileReader data URLs; only these prefixes are stripped.
_DATA_URL_PREFIX = re.compile(r"^data:(image/(?:png|jpeg|jpg|webp));base64,")


class AnalysisRequest(BaseModel):
    """One submission: free text and/or a single base64-encoded image."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    image: Optional[str] = None

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        payload = "".join(_DATA_URL_PREFIX.sub("", value).split())
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("image is not valid base64 data")
        return value

    @model_validator(mode="after")
    def _require_content(self) -> "AnalysisRequest":
        if not self.text.strip() and self.image is None:
            raise ValueError("text or image is required")
        return self

    @classmethod
    def create(cls, text: str = "", image: Optional[str] = None) -> "AnalysisRequest":
        """Build a request, raising InputValidationError instead of pydantic's error."""
        if not (text or "").strip() and not (image or "").strip():
            raise InputValidationError()
        try:
            return cls(text=text or "", image=image)
        except ValidationError as exc:
            raise InputValidationError("图片数据无法解析，请重新选择图片。") from exc

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())

    @property
    def image_mime_type(self) -> Optional[str]:
        if self.image is None:
            return None
        match = _DATA_URL_PREFIX.match(self.image)
        if not match:
            return config.DEFAULT_IMAGE_MIME
        mime = match.group(1)
        return "image/jpeg" if mime == "image/jpg" else mime

    @property
    def image_bytes(self) -> Optional[bytes]:
        if self.image is None:
            return None
        payload = "".join(_DATA_URL_PREFIX.sub("", self.image).split())
        return base64.b64decode(payload)


class AnalysisResult(BaseModel):
    """Structured verdict returned by the model. Immutable once received."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100, strict=True, description="PUA risk score, 0 safe to 100 severe")
    verdict: str
    summary: str
    details: list[str]
    advice: str
    tone: str


class AnalysisStatus(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[AnalysisStatus.IDLE] = AnalysisStatus.IDLE


class Analyzing(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[AnalysisStatus.ANALYZING] = AnalysisStatus.ANALYZING


class Completed(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[AnalysisStatus.COMPLETED] = AnalysisStatus.COMPLETED
    result: AnalysisResult


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal[AnalysisStatus.ERROR] = AnalysisStatus.ERROR
    message: str


LifecycleState = Annotated[
    Union[Idle, Analyzing, Completed, Failed],
    Field(discriminator="status"),
]
