import os
from pydantic import BaseModel
from typing import Optional, List


def _csv(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings(BaseModel):
    """for reading environment-driven configuration.

    Values have sensible defaults for local development; the Gemini key and
    the Clerk verification key must be provided for real traffic.
    """
    gemini_api_key: Optional[str] = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-image")
    gemini_model_label: str = os.getenv("GEMINI_MODEL_LABEL", "Gemini 2.5 Flash Image")
    gemini_timeout: float = float(os.getenv("GEMINI_TIMEOUT", "120"))
    gemini_temperature: float = float(os.getenv("GEMINI_TEMPERATURE", "0.4"))

    clerk_jwt_key: Optional[str] = os.getenv("CLERK_JWT_KEY")
    clerk_jwks_url: Optional[str] = os.getenv("CLERK_JWKS_URL")
    clerk_authorized_parties: List[str] = _csv(os.getenv("CLERK_AUTHORIZED_PARTIES"))
    clerk_clock_skew: int = int(os.getenv("CLERK_CLOCK_SKEW", "5"))
    clerk_billing_webhook_secret: Optional[str] = os.getenv("CLERK_BILLING_WEBHOOK_SECRET")
    webhook_tolerance: int = int(os.getenv("WEBHOOK_TOLERANCE", "300"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "console")

settings = Settings()
