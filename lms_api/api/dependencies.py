from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lms_api.core.clock import Clock, utc_now
from lms_api.models.principal import Principal
from lms_api.repos.category_repo import CategoryRepo
from lms_api.repos.course_repo import CourseRepo
from lms_api.repos.document_store import DocumentStore
from lms_api.repos.progress_repo import ProgressRepo
from lms_api.repos.quiz_repo import QuizRepo
from lms_api.services.categories_service import CategoryService
from lms_api.services.courses_service import CourseService
from lms_api.services.identity import IdentityVerifier
from lms_api.services.progress_recorder import ProgressRecorder
from lms_api.services.quizzes_service import QuizService
from lms_api.services.upload_service import UploadService, UploadSigner

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------------
# Lifespan-owned collaborators (built in lms_api/main.py, kept on app.state)
# ---------------------------------------------------------------------------


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_identity_verifier(request: Request) -> IdentityVerifier | None:
    return request.app.state.identity_verifier


def get_upload_signer(request: Request) -> UploadSigner:
    return request.app.state.upload_signer


def get_clock() -> Clock:
    return utc_now


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def require_user(
    request: Request,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    verifier: Annotated[IdentityVerifier | None, Depends(get_identity_verifier)],
) -> Principal:
    """Verify the identity provider's bearer token. Returns a Principal.

    Declared sync so JWKS fetches run in the threadpool.
    """
    if credentials is None:
        logger.warning("Request without bearer token rejected")
        raise _unauthorized("Not authenticated")

    if verifier is None:
        logger.error("Bearer token presented but no identity provider is configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "Identity provider not configured"},
        )

    try:
        principal = verifier.verify(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    request.state.user_id = principal.user_id
    logger.debug("Token validated for user=%s", principal.user_id)
    return principal


def require_self(
    user_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> Principal:
    """Access gate for per-student routes: the caller must be ``user_id``.

    Runs as a dependency, so a mismatch is rejected before the request
    body is validated and before any store access.
    """
    if not principal.owns(user_id):
        logger.warning(
            "Access denied: user=%s requested progress of user=%s",
            principal.user_id,
            user_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Not authorized to access this student's progress"},
        )
    return principal


CurrentUser = Annotated[Principal, Depends(require_user)]
SelfUser = Annotated[Principal, Depends(require_self)]


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def get_progress_repo(
    store: Annotated[DocumentStore, Depends(get_store)],
) -> ProgressRepo:
    return ProgressRepo(store)


def get_progress_recorder(
    request: Request,
    repo: Annotated[ProgressRepo, Depends(get_progress_repo)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ProgressRecorder:
    return ProgressRecorder(
        repo,
        clock=clock,
        max_attempts=request.app.state.settings.store_cas_retries,
    )


def get_category_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> CategoryService:
    return CategoryService(CategoryRepo(store), clock=clock)


def get_course_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> CourseService:
    return CourseService(CourseRepo(store), clock=clock)


def get_quiz_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> QuizService:
    return QuizService(QuizRepo(store), CourseRepo(store), clock=clock)


def get_upload_service(
    request: Request,
    signer: Annotated[UploadSigner, Depends(get_upload_signer)],
) -> UploadService:
    return UploadService(
        signer, public_domain=request.app.state.settings.cloudfront_domain
    )
