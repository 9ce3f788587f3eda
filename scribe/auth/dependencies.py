"""
Authentication and authorization dependencies for FastAPI routes.

``authenticate`` turns a bearer access token into an ``AuthContext`` (principal
plus its ability). ``require_permission`` then asks that ability whether the
action is allowed on the resolved subject.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from scribe.auth.abilities import (
    Ability,
    Action,
    ResourceRef,
    Role,
    Subject,
    SubjectType,
    define_abilities_for,
    normalize_subject,
)
from scribe.core.database import get_db
from scribe.core.errors import (
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
    TokenTypeMismatchError,
    UnauthorizedError,
)
from scribe.core.tokens import TokenService, TokenType, extract_bearer_token
from scribe.models import User
from scribe.realtime.channels import ChannelRegistry
from scribe.schemas.auth import Principal
from scribe.services import users as user_service
from scribe.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

TOKEN_REQUIRED_MESSAGE = "Access token is required"

# Reason suffix per rejected-token error; anything else gets no suffix.
_TOKEN_ERROR_REASONS: tuple[tuple[type[InvalidTokenError], str], ...] = (
    (TokenMalformedError, "Invalid token format"),
    (TokenSignatureError, "Invalid signature"),
    (TokenTypeMismatchError, "Invalid token type"),
)

Resolver = Callable[[Request, Session], Awaitable[Subject | None]]


@dataclass(frozen=True)
class AuthContext:
    """Authenticated principal and its request-scoped ability."""

    principal: Principal
    ability: Ability


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_channels(request: Request) -> ChannelRegistry:
    return request.app.state.channels


def get_dispatcher(
    channels: Annotated[ChannelRegistry, Depends(get_channels)],
) -> NotificationDispatcher:
    return NotificationDispatcher(channels)


def token_error_message(error: InvalidTokenError, kind: TokenType = TokenType.ACCESS) -> str:
    """Client-facing 401 message for a rejected token of the given kind."""
    if isinstance(error, TokenExpiredError):
        return f"{kind.value.capitalize()} token expired"
    for error_type, reason in _TOKEN_ERROR_REASONS:
        if isinstance(error, error_type):
            return f"Invalid {kind.value} token: {reason}"
    return f"Invalid {kind.value} token"


def _resolve_context(
    request: Request,
    db: Session,
    token_service: TokenService,
) -> AuthContext:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise UnauthorizedError(TOKEN_REQUIRED_MESSAGE)
    try:
        payload = token_service.verify(token, TokenType.ACCESS)
    except InvalidTokenError as e:
        message = token_error_message(e)
        logger.info(
            "Access token rejected",
            extra={"reason": type(e).__name__, "path": request.url.path},
        )
        raise UnauthorizedError(message) from e

    user = user_service.find_by_id(db, payload.principal_id)
    if user is None:
        logger.info("Token principal not found", extra={"principal_id": payload.principal_id})
        raise UnauthorizedError("User not found")

    principal = Principal.model_validate(user)
    context = AuthContext(
        principal=principal,
        ability=define_abilities_for(principal.id, principal.role),
    )
    request.state.auth = context
    return context


def authenticate(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> AuthContext:
    """Dependency: require a valid access token for an existing user. Raises 401 otherwise."""
    return _resolve_context(request, db, token_service)


def optional_authenticate(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> AuthContext | None:
    """Dependency: like authenticate, but yields None instead of rejecting."""
    try:
        return _resolve_context(request, db, token_service)
    except UnauthorizedError:
        return None


CurrentAuth = Annotated[AuthContext, Depends(authenticate)]


def get_current_user(
    context: CurrentAuth,
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Dependency: the authenticated principal's ORM row, for profile changes."""
    user = user_service.find_by_id(db, context.principal.id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def require_role(minimum: Role) -> Callable[..., AuthContext]:
    """Dependency factory: coarse gate on role rank. Raises 403 below the minimum."""

    def dependency(context: CurrentAuth) -> AuthContext:
        if not context.principal.role.at_least(minimum):
            logger.info(
                "Role check failed",
                extra={
                    "principal_id": context.principal.id,
                    "role": context.principal.role.value,
                    "required": minimum.value,
                },
            )
            raise ForbiddenError("Insufficient permissions")
        return context

    return dependency


def check_permission(
    context: AuthContext | None,
    action: Action | str,
    subject: Subject | None,
) -> None:
    """Raise unless the context's ability allows ``action`` on ``subject``."""
    if context is None:
        raise UnauthorizedError("User not authenticated")
    act = Action(action)
    target = normalize_subject(subject)
    if context.ability.can(act, target):
        return
    if isinstance(target, ResourceRef):
        description = f"{target.type_tag.value} {target.id}"
    else:
        description = target.value
    explicit_deny = any(r.inverted for r in context.ability.relevant_rules(act, target))
    logger.info(
        "Permission denied",
        extra={
            "principal_id": context.principal.id,
            "action": act.value,
            "subject": description,
            "explicit_deny": explicit_deny,
        },
    )
    raise ForbiddenError(f"Not allowed to {act.value} {description}")


def require_permission(
    action: Action,
    resolver: Resolver | None = None,
) -> Callable[..., Awaitable[AuthContext]]:
    """
    Dependency factory guarding a route with a policy check.

    ``resolver(request, db)`` supplies the subject (an instance, a ResourceRef
    or a type tag). Without one, the check runs against ``SubjectType.ALL``.
    """

    async def dependency(
        request: Request,
        context: CurrentAuth,
        db: Annotated[Session, Depends(get_db)],
    ) -> AuthContext:
        subject: Any = SubjectType.ALL
        if resolver is not None:
            subject = await resolver(request, db)
        check_permission(context, action, subject)
        return context

    return dependency


def instance_resolver(
    model: type,
    param: str,
    fallback: SubjectType,
) -> Resolver:
    """
    Build a resolver loading ``model`` by the integer path parameter ``param``.

    A missing or unparsable id resolves to the bare ``fallback`` type tag.
    """

    async def resolve(request: Request, db: Session) -> Subject:
        raw = request.path_params.get(param)
        try:
            key = int(raw)
        except (TypeError, ValueError):
            return fallback
        instance = await run_in_threadpool(db.get, model, key)
        if instance is None:
            return fallback
        return instance

    return resolve


def type_resolver(subject_type: SubjectType) -> Resolver:
    """Resolver for routes guarded on a whole resource type rather than an instance."""

    async def resolve(request: Request, db: Session) -> Subject:
        return subject_type

    return resolve
