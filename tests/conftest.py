from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lms_api.api.dependencies import get_identity_verifier, get_upload_signer
from lms_api.main import create_app
from tests.support import TEST_SETTINGS, FakeUploadSigner, mint_token, test_verifier


@pytest.fixture
def upload_signer() -> FakeUploadSigner:
    return FakeUploadSigner()


@pytest.fixture
def app(upload_signer: FakeUploadSigner) -> FastAPI:
    application = create_app(TEST_SETTINGS)
    application.dependency_overrides[get_identity_verifier] = lambda: test_verifier
    application.dependency_overrides[get_upload_signer] = lambda: upload_signer
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    # Entering the client runs the lifespan: a fresh in-memory store per test
    with TestClient(app) as c:
        yield c


@pytest.fixture
def token() -> str:
    return mint_token()
