"""ORM model for application users (auth and role-based permissions)."""

from sqlalchemy import Column, Integer, String

from scribe.auth.abilities import Role, SubjectType
from scribe.core.security import verify_password
from scribe.models.base import Base, OwnedResource, TimestampMixin


class User(TimestampMixin, OwnedResource, Base):
    """
    User account for JWT authentication and ability checks.

    role: one of guest, writer, editor, admin (see Role). Registration always
    creates a guest; only an admin can raise it.
    """

    __tablename__ = "users"
    subject_type = SubjectType.USER

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=Role.GUEST.value, index=True)

    @property
    def owner_id(self) -> int:
        # A user owns their own account record.
        return self.id

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    def compare_password(self, candidate: str) -> bool:
        """Check a candidate password against the stored hash."""
        return verify_password(candidate, self.password_hash)
