"""Request Dependencies - authenticated caller, platform bundle, webhook secret.

Invariants:
    - The user id comes from the trusted proxy header only; missing -> 401
    - Webhook secret compared in constant time; an unset secret rejects every webhook
    - Platform is created once in the lifespan and read from app.state

Design Decisions:
    - Caller resolved once per request and passed to services
"""

import hmac

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.config import get_settings
from projectcreator.core.domain_types import Caller
from projectcreator.core.errors import AuthenticationRequiredError
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.models.project import Project
from projectcreator.services.project_access import (
    assert_can_access, get_project_or_404, resolve_caller,
)


def get_platform(request: Request) -> Platform:
    platform = getattr(request.app.state, "platform", None)
    if platform is None:
        raise RuntimeError("Platform not initialized")
    return platform


def get_current_user_id(request: Request) -> str:
    user_id = request.headers.get(get_settings().trusted_user_header, "").strip()
    if not user_id:
        raise AuthenticationRequiredError()
    return user_id


async def get_caller(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
) -> Caller:
    return await resolve_caller(db, platform, user_id)


def verify_webhook_secret(request: Request) -> None:
    settings = get_settings()
    provided = request.headers.get(settings.webhook_secret_header, "")
    expected = settings.webhook_secret
    if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise AuthenticationRequiredError()


async def get_accessible_project(
    project_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
) -> Project:
    """Path-scoped project the caller may read (404/403 otherwise)."""
    project = await get_project_or_404(db, project_id)
    await assert_can_access(caller, project, platform)
    return project
