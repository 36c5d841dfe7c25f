"""Gemini transport: turns a RestorationRequest into response content parts.
"""
import base64
from typing import Any, Callable, List, Optional

import httpx
import structlog
from google.genai import errors, types

from ..core.data_url import InvalidImageFormat, payload_bytes
from ..core.models import ContentPart, FailureReason, ImagePayload, RestorationRequest

logger = structlog.get_logger(__name__)

DEFAULT_IMAGE_MIME = "image/png"


class ModelUnavailable(Exception):
    """The model call failed; `reason` says how, for the response contract."""

    def __init__(self, reason: FailureReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


def classify_failure(exc: BaseException) -> FailureReason:
    if isinstance(exc, ModelUnavailable):
        return exc.reason
    if isinstance(exc, InvalidImageFormat):
        return FailureReason.INVALID_PAYLOAD
    if isinstance(exc, errors.APIError):
        if exc.code == 429 or exc.status == "RESOURCE_EXHAUSTED":
            return FailureReason.QUOTA
        return FailureReason.MODEL_ERROR
    if isinstance(exc, httpx.TimeoutException):
        return FailureReason.TIMEOUT
    if isinstance(exc, httpx.TransportError):
        return FailureReason.NETWORK
    return FailureReason.UNKNOWN


class GeminiImageModel:
    """Multi-part image+text generation against a `google.genai.Client`.

    Pass a ready `client`, or a `client_factory` that is called on the first
    request; a factory that fails (e.g. no API key) is retried next time.
    """

    def __init__(
        self,
        client=None,
        model_name: str = "",
        temperature: Optional[float] = None,
        client_factory: Optional[Callable[[], Any]] = None,
    ):
        self.client = client
        self.client_factory = client_factory
        self.model_name = model_name
        self.temperature = temperature

    def _get_client(self):
        if self.client is None:
            if self.client_factory is None:
                raise ModelUnavailable(FailureReason.MODEL_ERROR, "no_client_configured")
            try:
                self.client = self.client_factory()
            except Exception as e:
                logger.error("gemini_client_unavailable", error=str(e))
                raise ModelUnavailable(FailureReason.MODEL_ERROR, str(e)) from e
        return self.client

    def generate(self, request: RestorationRequest) -> List[ContentPart]:
        image_part = types.Part.from_bytes(
            data=payload_bytes(request.payload),
            mime_type=request.payload.mime_type,
        )
        client = self._get_client()
        try:
            response = client.models.generate_content(
                model=self.model_name,
                contents=[request.prompt, image_part],
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    temperature=self.temperature,
                ),
            )
        except Exception as e:
            reason = classify_failure(e)
            if reason is FailureReason.UNKNOWN:
                raise
            raise ModelUnavailable(reason, str(e)) from e

        if not response.candidates:
            feedback = getattr(response, "prompt_feedback", None)
            logger.warning(
                "gemini_no_candidates",
                model=self.model_name,
                block_reason=str(getattr(feedback, "block_reason", None)),
            )
            raise ModelUnavailable(FailureReason.EMPTY_RESPONSE, "no_candidates")

        content = response.candidates[0].content
        return [_to_content_part(p) for p in (content.parts if content and content.parts else [])]


def _to_content_part(part) -> ContentPart:
    inline = getattr(part, "inline_data", None)
    if inline is not None and inline.data:
        return ContentPart(
            inline_data=ImagePayload(
                mime_type=inline.mime_type or DEFAULT_IMAGE_MIME,
                data=base64.b64encode(inline.data).decode("ascii"),
            )
        )
    return ContentPart(text=getattr(part, "text", None))
