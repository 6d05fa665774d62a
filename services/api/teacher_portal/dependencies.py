"""FastAPI dependency injection."""

import logging
import secrets
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from teacher_portal.config import Settings, get_settings
from teacher_portal.services.admin_sync_client import AdminPortalClient, get_admin_portal_client
from teacher_portal.services.event_store import EventStore
from teacher_portal.services.reconciler import Reconciler, get_reconciler
from teacher_portal.services.sync_orchestrator import SyncOrchestrator, get_sync_orchestrator

logger = logging.getLogger(__name__)

# Database engine and session factory (initialized in lifespan)
_engine = None
_session_factory = None

security = HTTPBearer()


@dataclass(frozen=True)
class TeacherIdentity:
    id: int
    name: str | None
    email: str | None
    campus: str = "dubai"


def init_db(settings: Settings) -> tuple:
    """Initialize database engine and session factory. Called from lifespan."""
    global _engine, _session_factory
    _engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=10,
        max_overflow=10,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine, _session_factory


async def shutdown_db():
    """Dispose of the database engine. Called from lifespan."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory(settings: Settings = Depends(get_settings)) -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        init_db(settings)
    return _session_factory


def get_event_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> EventStore:
    return EventStore(session_factory)


def get_admin_client(settings: Settings = Depends(get_settings)) -> AdminPortalClient:
    return get_admin_portal_client(settings)


def get_orchestrator(
    settings: Settings = Depends(get_settings),
    store: EventStore = Depends(get_event_store),
    client: AdminPortalClient = Depends(get_admin_client),
) -> SyncOrchestrator:
    return get_sync_orchestrator(settings, store, client)


def get_bulk_reconciler(
    settings: Settings = Depends(get_settings),
    store: EventStore = Depends(get_event_store),
    client: AdminPortalClient = Depends(get_admin_client),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> Reconciler:
    return get_reconciler(settings, store, client, orchestrator)


async def get_current_teacher(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> TeacherIdentity:
    """Extract the teacher identity from a JWT access token."""
    token = credentials.credentials
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
        user_id = payload.get("sub")
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token payload",
            )
        identity = TeacherIdentity(
            id=int(user_id),
            name=payload.get("name"),
            email=payload.get("email"),
            campus=payload.get("campus") or "dubai",
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
        ) from e

    if payload.get("role") != "teacher":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Teacher role required.",
        )
    return identity


async def verify_admin_webhook(
    x_sync_token: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Check the shared secret the admin portal sends with status webhooks."""
    expected = settings.admin_webhook_token.get_secret_value()
    if not expected:
        if settings.app_env == "production":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Webhook token not configured",
            )
        logger.warning("Accepting unverified admin webhook in %s mode", settings.app_env)
        return

    if not x_sync_token or not secrets.compare_digest(x_sync_token, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid sync token",
        )
