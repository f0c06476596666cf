"""
Provider Interface Module
Abstract base class defining the contract for generative-model providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ContentPart:
    """One ordered piece of the outbound prompt: either text or inline binary data."""
    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "ContentPart":
        return cls(data=data, mime_type=mime_type)

    @property
    def is_inline_data(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class GenerationSettings:
    """Decoding configuration sent with every request."""
    temperature: float
    response_mime_type: str = "application/json"


class ProviderInterface(ABC):
    """Abstract base class for all completion providers."""

    @abstractmethod
    async def generate(
        self,
        parts: list[ContentPart],
        schema: dict[str, Any],
        settings: GenerationSettings,
    ) -> Optional[str]:
        """
        Send one request to the model and return its raw response text.

        Args:
            parts: Ordered content parts (instruction, text, image)
            schema: Response schema the model must conform to
            settings: Decoding configuration

        Returns:
            The response text, or None when the model produced none
        """
        pass

    @abstractmethod
    def validate(self) -> bool:
        """Validate provider configuration and dependencies."""
        pass
