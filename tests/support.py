"""Shared test helpers.

Kept out of conftest.py so every test module imports one instance of the
signing key: pytest loads conftest under its own module name, and a
second ``import tests.conftest`` would mint tokens with a different key.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from lms_api.core.config import SETTINGS
from lms_api.services.identity import IdentityVerifier

# Stand-in for the identity provider: an ephemeral ES256 key pair.  The
# app verifies with the public half; mint_token signs with the private.
_signing_key = ec.generate_private_key(ec.SECP256R1())

TEST_ISSUER = "https://identity.test"
TEST_AUDIENCE = "lms-api"

TEACHER = "user_teacher"
OTHER = "user_other"

TEST_SETTINGS = replace(
    SETTINGS,
    app_env="test",
    database_url=None,
    redis_url=None,
    identity_jwks_url=None,
    identity_public_key=None,
    s3_bucket_name="lms-uploads-test",
    cloudfront_domain="https://cdn.test",
    store_cas_retries=5,
)

test_verifier = IdentityVerifier(
    algorithms=("ES256",),
    public_key=_signing_key.public_key(),
    issuer=TEST_ISSUER,
    audience=TEST_AUDIENCE,
)


class FakeUploadSigner:
    """Records what would have been signed; returns a recognizable URL."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, int]] = []

    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        self.calls.append((key, content_type, expires_in))
        return f"https://uploads.test/{key}?expires={expires_in}"


def mint_token(
    user_id: str = "user_student",
    *,
    expires_in: timedelta = timedelta(minutes=5),
    **claims: object,
) -> str:
    """Sign a token the way the identity provider would."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "iss": TEST_ISSUER,
        "aud": TEST_AUDIENCE,
        "iat": now,
        "exp": now + expires_in,
        **claims,
    }
    return jwt.encode(payload, _signing_key, algorithm="ES256")


def auth(user_id: str = "user_student") -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id)}"}


def create_course(client: TestClient, teacher: str = TEACHER) -> dict:
    resp = client.post(
        "/courses",
        json={"teacherId": teacher, "teacherName": "Ada Lovelace"},
        headers=auth(teacher),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
