from google import genai
from google.genai import types

from ..core.config import settings


def genai_client() -> genai.Client:
    """Create a Gemini client using our configured key and request timeout.
    """
    return genai.Client(
        api_key=settings.gemini_api_key,
        # HttpOptions takes milliseconds
        http_options=types.HttpOptions(timeout=int(settings.gemini_timeout * 1000)),
    )
