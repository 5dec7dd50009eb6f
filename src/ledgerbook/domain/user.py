"""User and authorization domain service."""

from typing import Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import User, UserRole
from ledgerbook.domain.errors import (
    NotFoundError,
    PermissionDeniedError,
    SessionExpiredError,
    ValidationError,
    user_not_found,
)

logger = structlog.get_logger(__name__)


def is_privileged(user: Optional[User]) -> bool:
    """Return True when the user may mutate the ledger."""
    return user is not None and user.role == UserRole.ADMIN


def require_current_user(user: Optional[User]) -> User:
    """Return the acting user or raise SessionExpiredError."""
    if user is None:
        raise SessionExpiredError()
    return user


def require_privileged(user: Optional[User]) -> User:
    """Return the acting user if privileged.

    Raises:
        SessionExpiredError: If there is no acting user
        PermissionDeniedError: If the user is not an admin
    """
    user = require_current_user(user)
    if not is_privileged(user):
        raise PermissionDeniedError(f"User '{user.name}' is not allowed to change data")
    return user


class UserService:
    """Service for managing users and their roles."""

    def __init__(self, db: Database):
        """Initialize user service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_user(
        self, name: str, role: UserRole = UserRole.VIEWER, acting_user: Optional[User] = None
    ) -> int:
        """Create a user.

        The very first user may be created without an acting user and always
        becomes an admin; afterwards only admins may create users.

        Args:
            name: Unique user name
            role: Role of the new user
            acting_user: User performing the operation

        Returns:
            User ID

        Raises:
            ValidationError: If the name is empty or taken
            SessionExpiredError: If no acting user is given once users exist
            PermissionDeniedError: If the acting user is not an admin
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("User name is required")

        existing = self.db.list_users()
        if existing:
            require_privileged(acting_user)
        else:
            role = UserRole.ADMIN

        if any(u.name == name for u in existing):
            raise ValidationError(f"User with name '{name}' already exists")

        user_id = self.db.create_user(name=name, role=role)
        logger.info("user_created", user_id=user_id, role=role.value)
        return user_id

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.db.get_user(user_id)

    def get_user_by_name(self, name: str) -> Optional[User]:
        """Get user by name."""
        return self.db.get_user_by_name(name)

    def list_users(self) -> list[User]:
        """List all users."""
        return self.db.list_users()

    def resolve_user(self, user: str | int | None) -> Optional[User]:
        """Find the acting user by name or ID; None stays None.

        Raises:
            NotFoundError: If a user was named but does not exist
        """
        if user is None or user == "":
            return None
        found = None
        if isinstance(user, int) or str(user).isdigit():
            found = self.db.get_user(int(user))
        if found is None:
            found = self.db.get_user_by_name(str(user))
        if found is None:
            raise NotFoundError(user_not_found(user))
        return found

    def set_role(self, user_id: int, role: UserRole, acting_user: Optional[User]) -> None:
        """Change the role of a user.

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If the change would leave no admin
        """
        require_privileged(acting_user)
        user = self.db.get_user(user_id)
        if user is None:
            raise NotFoundError(user_not_found(user_id))

        if user.role == UserRole.ADMIN and role != UserRole.ADMIN:
            admins = [u for u in self.db.list_users() if u.role == UserRole.ADMIN]
            if len(admins) <= 1:
                raise ValidationError("Cannot remove the last admin")

        self.db.update_user_role(user_id, role)
        logger.info("user_role_changed", user_id=user_id, role=role.value)
