import os, sys, time
from io import BytesIO
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from PIL import Image

# Ensure project root on sys.path so `import photo_restore...` works
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from photo_restore.core.config import settings


def png_bytes(size=(2, 2), color=(255, 0, 0), fmt="PNG") -> bytes:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class FakeModel:
    """Stands in for the Gemini transport; returns canned parts or raises."""

    def __init__(self, parts=None, error=None):
        self.parts = parts or []
        self.error = error
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.parts


def _pem_pair():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture(scope="session")
def clerk_keys():
    private_pem, public_pem = _pem_pair()
    other_private, _ = _pem_pair()
    return SimpleNamespace(private=private_pem, public=public_pem, other_private=other_private)


@pytest.fixture
def clerk_auth(monkeypatch, clerk_keys):
    """Configure session verification and return a token factory."""
    monkeypatch.setattr(settings, "clerk_jwt_key", clerk_keys.public)
    monkeypatch.setattr(settings, "clerk_jwks_url", None)
    monkeypatch.setattr(settings, "clerk_authorized_parties", [])
    monkeypatch.setattr(settings, "clerk_clock_skew", 0)

    def make_token(sub="user_123", private_key=None, **claims):
        now = int(time.time())
        payload = {"sub": sub, "iat": now, "nbf": now - 10, "exp": now + 60}
        payload.update(claims)
        payload = {k: v for k, v in payload.items() if v is not None}
        return jwt.encode(payload, private_key or clerk_keys.private, algorithm="RS256")

    return make_token
