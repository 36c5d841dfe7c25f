"""Restoration orchestration: one best-effort model call per photo.

Failures never propagate. When the model cannot produce anything usable the
caller gets the original photo back with an explanation, so the dashboard
always has an image to show.
"""
from typing import Optional

import structlog

from ..core.models import (
    FailureReason,
    ImagePayload,
    OutcomeKind,
    RestorationOutcome,
    RestorationRequest,
)
from .model import classify_failure
from .prompt import build_prompt

logger = structlog.get_logger(__name__)

RESTORED_MESSAGE = "Photo restored successfully with professional quality!"
ANALYSIS_ONLY_MESSAGE = "Image analysis completed. Image generation may require additional configuration."
FAILED_MESSAGE = "Unable to restore image. Please ensure your API key has {model} access enabled."
EMPTY_MESSAGE = "The restoration model returned no content. Your original photo is unchanged."


class PhotoRestorer:
    def __init__(self, model, model_label: str = "Gemini", prompt: Optional[str] = None):
        self.model = model
        self.model_label = model_label
        self.prompt = prompt or build_prompt()

    def _failed(self, payload: ImagePayload, reason: FailureReason, message: str) -> RestorationOutcome:
        return RestorationOutcome(
            kind=OutcomeKind.FAILED,
            image=payload,
            analysis="",
            message=message,
            failure_reason=reason,
        )

    def restore(self, payload: ImagePayload) -> RestorationOutcome:
        request = RestorationRequest(payload=payload, prompt=self.prompt)

        try:
            parts = self.model.generate(request)
        except Exception as e:
            reason = classify_failure(e)
            logger.exception("restoration_model_failed", failure_reason=reason.value)
            return self._failed(payload, reason, FAILED_MESSAGE.format(model=self.model_label))

        analysis = ""
        restored: Optional[ImagePayload] = None
        for part in parts or []:
            if part.text:
                analysis += part.text
            elif part.inline_data is not None:
                # later image parts override earlier ones
                restored = part.inline_data

        if restored is not None:
            logger.info("restoration_succeeded", mime_type=restored.mime_type)
            return RestorationOutcome(
                kind=OutcomeKind.RESTORED,
                image=restored,
                analysis=analysis or f"Image successfully restored using {self.model_label}.",
                message=RESTORED_MESSAGE,
            )

        if analysis:
            logger.info("restoration_analysis_only", analysis_chars=len(analysis))
            return RestorationOutcome(
                kind=OutcomeKind.ANALYSIS_ONLY,
                image=payload,
                analysis=analysis,
                message=ANALYSIS_ONLY_MESSAGE,
            )

        logger.warning("restoration_empty_response")
        return self._failed(payload, FailureReason.EMPTY_RESPONSE, EMPTY_MESSAGE)
