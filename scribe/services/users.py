"""User accounts: registration, credential checks, profile changes and role elevation."""

import logging
from datetime import date, datetime, time
from typing import Literal

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scribe.auth.abilities import Role
from scribe.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from scribe.core.security import hash_password
from scribe.models import User
from scribe.schemas.auth import (
    ChangePasswordRequest,
    RegisterRequest,
    UpdateProfileRequest,
)
from scribe.services.pagination import paginate

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email address"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

# Columns the admin listing may sort on.
SORTABLE_FIELDS = ("created_at", "updated_at", "email", "first_name", "last_name", "role")


def find_by_id(db: Session, user_id: int | str) -> User | None:
    """Load a user by id; non-numeric ids resolve to None."""
    try:
        key = int(user_id)
    except (TypeError, ValueError):
        return None
    return db.get(User, key)


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def save(db: Session, user: User) -> User:
    """Persist a new or modified user; a duplicate email becomes ConflictError."""
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e
    db.refresh(user)
    return user


def register(db: Session, data: RegisterRequest) -> User:
    """Create a guest account. Raises ConflictError when the email is taken."""
    if find_by_email(db, data.email) is not None:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=Role.GUEST.value,
    )
    user = save(db, user)
    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the user for valid credentials, else raise UnauthorizedError (same message for both cases)."""
    user = find_by_email(db, email)
    if user is None or not user.compare_password(password):
        logger.info("Login failed", extra={"email_domain": email.rpartition("@")[2]})
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
    return user


def update_profile(db: Session, user: User, data: UpdateProfileRequest) -> User:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in changes and changes["email"] != user.email:
        existing = find_by_email(db, changes["email"])
        if existing is not None and existing.id != user.id:
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    for key, value in changes.items():
        setattr(user, key, value)
    return save(db, user)


def change_password(db: Session, user: User, data: ChangePasswordRequest) -> User:
    if not user.compare_password(data.current_password):
        raise UnauthorizedError("Current password is incorrect")
    user.password_hash = hash_password(data.new_password)
    return save(db, user)


def elevate_role(db: Session, actor_role: Role | str, target_id: int, new_role: Role | str) -> User:
    """
    Raise a user's role. Only an admin may do this, and the new role must be
    strictly higher than the target's current role.
    """
    if Role(actor_role) is not Role.ADMIN:
        raise ForbiddenError("Only admins can update user roles")
    user = find_by_id(db, target_id)
    if user is None:
        raise NotFoundError("User not found")
    target_role = Role(new_role)
    if target_role.rank <= Role(user.role).rank:
        raise ValidationError(
            {"role": ["Cannot assign a role that is not higher than the current role"]},
            message="Invalid role change",
        )
    previous = user.role
    user.role = target_role.value
    user = save(db, user)
    logger.info(
        "User role elevated",
        extra={"user_id": user.id, "from_role": previous, "to_role": user.role},
    )
    return user


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 10,
    role: Role | None = None,
    email: str | None = None,
    search: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    sort_by: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> tuple[list[User], int]:
    """Filtered, sorted page of users for the admin listing."""
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == Role(role).value)
    if email:
        query = query.filter(User.email.ilike(f"%{email.strip()}%"))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
    if start_date is not None:
        query = query.filter(User.created_at >= datetime.combine(start_date, time.min))
    if end_date is not None:
        # Inclusive of the whole end day.
        query = query.filter(User.created_at <= datetime.combine(end_date, time.max))

    column = getattr(User, sort_by if sort_by in SORTABLE_FIELDS else "created_at")
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), User.id)
    return paginate(query, page, limit)
