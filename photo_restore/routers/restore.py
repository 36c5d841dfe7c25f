from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from pydantic import ValidationError
import structlog
from ..core.auth import require_user
from ..core.config import settings
from ..core.data_url import InvalidImageFormat, decode, encode
from ..core.models import RestoreRequest, RestoreResponse
from ..gemini.clients import genai_client
from ..gemini.model import GeminiImageModel
from ..gemini.restoration import PhotoRestorer

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["restore"])


def build_default_restorer() -> PhotoRestorer:
    # The Gemini client is built on the first model call so a missing key
    # degrades like any other model failure.
    model = GeminiImageModel(
        model_name=settings.gemini_model,
        temperature=settings.gemini_temperature,
        client_factory=genai_client,
    )
    return PhotoRestorer(model, model_label=settings.gemini_model_label)


def get_restorer(request: Request) -> PhotoRestorer:
    """Return the app's restorer, building the Gemini-backed one on first use."""
    state = request.app.state
    if getattr(state, "restorer", None) is None:
        state.restorer = build_default_restorer()
    return state.restorer


async def _read_body(request: Request) -> RestoreRequest:
    try:
        raw = await request.json()
        return RestoreRequest.model_validate(raw)
    except (ValueError, ValidationError):
        raise HTTPException(status_code=400, detail="Invalid request body")


@router.post(
    "/restore",
    response_model=RestoreResponse,
    summary="Restore a photo",
    description=(
        "Send a photo as a data URL (`data:<mime>;base64,<payload>`) in the `image` field.\n\n"
        "Always answers 200 once the input is valid: `outcome` tells whether the photo was "
        "`restored`, only analysed (`analysis_only`, original image returned) or the model "
        "`failed` (original image returned, `failureReason` set)."
    ),
    # The body is read by hand after authentication, so document it here.
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": RestoreRequest.model_json_schema()}},
        }
    },
)
async def restore_photo(
    request: Request,
    user_id: str = Depends(require_user),
    restorer: PhotoRestorer = Depends(get_restorer),
):
    body = await _read_body(request)
    if not body.image:
        raise HTTPException(status_code=400, detail="No image provided")
    try:
        payload = decode(body.image)
    except InvalidImageFormat:
        raise HTTPException(status_code=400, detail="Invalid image format")

    log = logger.bind(user_id=user_id, mime_type=payload.mime_type)
    log.info("restore_requested")
    outcome = await run_in_threadpool(restorer.restore, payload)
    log.info(
        "restore_completed",
        outcome=outcome.kind.value,
        failure_reason=outcome.failure_reason.value if outcome.failure_reason else None,
    )

    return RestoreResponse(
        restored_image=encode(outcome.image.mime_type, outcome.image.data),
        analysis=outcome.analysis,
        message=outcome.message,
        outcome=outcome.kind,
        failure_reason=outcome.failure_reason,
    )
