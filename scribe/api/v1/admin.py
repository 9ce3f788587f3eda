"""Admin-only user management: listing and role elevation."""

from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from scribe.auth.abilities import Action, Role, SubjectType
from scribe.auth.dependencies import (
    AuthContext,
    require_permission,
    require_role,
    type_resolver,
)
from scribe.core.database import get_db
from scribe.schemas.auth import Principal, UpdateRoleRequest
from scribe.schemas.envelope import ApiResponse, Page, ok
from scribe.services import users as user_service

router = APIRouter()

UserSortField = Literal["created_at", "updated_at", "email", "first_name", "last_name", "role"]

can_read_users = require_permission(Action.READ, type_resolver(SubjectType.USER))
require_admin = require_role(Role.ADMIN)


@router.get("/users", response_model=ApiResponse[Page[Principal]])
def list_users(
    _admin: Annotated[AuthContext, Depends(can_read_users)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    role: Role | None = None,
    email: str | None = None,
    search: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    sort_by: UserSortField = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> ApiResponse[Page[Principal]]:
    """List users with filters and sorting (admin only)."""
    users, total = user_service.list_users(
        db,
        page=page,
        limit=limit,
        role=role,
        email=email,
        search=search,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ok(
        "Users retrieved successfully",
        Page[Principal].build([Principal.model_validate(u) for u in users], total, page, limit),
    )


@router.patch("/users/{user_id}", response_model=ApiResponse[Principal])
def update_user_role(
    user_id: int,
    body: UpdateRoleRequest,
    context: Annotated[AuthContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[Principal]:
    """Raise a user's role. Admin only; the new role must be higher than the current one."""
    user = user_service.elevate_role(db, context.principal.role, user_id, body.role)
    return ok("User role updated successfully", Principal.model_validate(user))
