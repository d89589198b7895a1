from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Iterator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, selectinload

from reviewflow.core.config import WorkflowConfig, get_settings
from reviewflow.core.review.events import ReviewEvents, review_events
from reviewflow.core.security import decode_token
from reviewflow.db.models import User
from reviewflow.db.session import SessionLocal
from reviewflow.services.document_store import (
    DocumentStore,
    HttpDocumentStore,
    InMemoryDocumentStore,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

# Used when no host document store URL is configured
_embedded_store = InMemoryDocumentStore()


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    """Get current authenticated user from the bearer JWT."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token:
        user_id = decode_token(token)
        if user_id:
            user = (
                db.query(User)
                .options(selectinload(User.role))
                .filter(User.id == user_id)
                .first()
            )
            if user and user.is_active:
                return user

    raise credentials_exception


def get_workflow_config() -> WorkflowConfig:
    return WorkflowConfig.from_settings(get_settings())


@lru_cache
def _http_document_store(base_url: str) -> HttpDocumentStore:
    return HttpDocumentStore.from_settings(get_settings())


def get_document_store() -> DocumentStore:
    settings = get_settings()
    if settings.document_store_url:
        return _http_document_store(settings.document_store_url)
    return _embedded_store


def get_events() -> ReviewEvents:
    return review_events


@contextmanager
def transaction(db: Session, events: ReviewEvents) -> Iterator[None]:
    """
    Commit the request's work on success, roll it back on any error.

    Subscribers are notified only once the commit went through.
    """
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
    events.notify_changed()
