from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OutcomeKind(str, Enum):
    RESTORED = "restored"
    ANALYSIS_ONLY = "analysis_only"
    FAILED = "failed"


class FailureReason(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    QUOTA = "quota"
    MODEL_ERROR = "model_error"
    INVALID_PAYLOAD = "invalid_payload"
    EMPTY_RESPONSE = "empty_response"
    UNKNOWN = "unknown"


class ImagePayload(BaseModel):
    """An image in transit. `data` is base64 text, never raw bytes."""
    mime_type: str
    data: str


class RestorationRequest(BaseModel):
    payload: ImagePayload
    prompt: str


class ContentPart(BaseModel):
    text: Optional[str] = None
    inline_data: Optional[ImagePayload] = None


class RestorationOutcome(BaseModel):
    kind: OutcomeKind
    image: ImagePayload
    analysis: str = ""
    message: str
    failure_reason: Optional[FailureReason] = None


class RestoreRequest(BaseModel):
    # Loose so missing or non-string values reach the handler and get the
    # specific 400 messages
    image: Optional[Any] = None


class RestoreResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    restored_image: str
    analysis: str
    message: str
    outcome: OutcomeKind
    failure_reason: Optional[FailureReason] = None


class WebhookAck(BaseModel):
    received: bool = True
