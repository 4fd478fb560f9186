from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .io import PreviewHandle


ConfidenceTier = Literal["high", "medium", "low"]


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    NETWORK_OR_UNKNOWN = "network_or_unknown"


class OperationError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str


class OperationFailure(Exception):
    """Raised by the validator and the client; carries the user-facing error."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.error = OperationError(kind=kind, message=message)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


@dataclass(frozen=True)
class ImageFile:
    filename: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ImageSelection:
    file: ImageFile
    preview: "PreviewHandle"


class ClassificationResult(BaseModel):
    """Raw `{prediction, confidence}` payload from the inference service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prediction_label: str = Field("", alias="prediction")
    confidence: float = 0.0


class ResolvedDiagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    title: str
    description: str
    badge_class: str
    panel_class: str
    prediction_label: str
    confidence: float
    confidence_tier: ConfidenceTier
    confidence_text_class: str
    confidence_bar_class: str
    confidence_percent: str


@dataclass(frozen=True)
class SessionState:
    selection: Optional[ImageSelection] = None
    result: Optional[ClassificationResult] = None
    diagnostic: Optional[ResolvedDiagnostic] = None
    error: Optional[OperationError] = None
    in_flight: bool = False
