"""Role based access control operations."""

from __future__ import annotations

from .core import BaseClient, handle_status
from .entities import PrivilegeObjectType, Role, User

# Kinds of user/role operation, numbered as on the wire.
ADD_USER_TO_ROLE = 0
REMOVE_USER_FROM_ROLE = 1

# Kinds of privilege operation, numbered as on the wire.
PRIVILEGE_GRANT = 0
PRIVILEGE_REVOKE = 1

_OBJECT_TYPE_NAMES = {
    PrivilegeObjectType.COLLECTION: "Collection",
    PrivilegeObjectType.GLOBAL: "Global",
    PrivilegeObjectType.USER: "User",
}


def _object_type_name(object_type: int) -> str:
    try:
        return _OBJECT_TYPE_NAMES.get(PrivilegeObjectType(object_type), "")
    except ValueError:
        return ""


class RbacOperations(BaseClient):
    """Manage roles, user membership and privileges."""

    def create_role(self, name: str) -> None:
        """Create a role."""
        handle_status(self._require_service().create_role(role_name=name))

    def drop_role(self, name: str) -> None:
        """Drop a role."""
        handle_status(self._require_service().drop_role(role_name=name))

    def add_user_role(self, username: str, role: str) -> None:
        """Add a user to a role."""
        handle_status(
            self._require_service().operate_user_role(
                username=username, role_name=role, type=ADD_USER_TO_ROLE
            )
        )

    def remove_user_role(self, username: str, role: str) -> None:
        """Remove a user from a role."""
        handle_status(
            self._require_service().operate_user_role(
                username=username, role_name=role, type=REMOVE_USER_FROM_ROLE
            )
        )

    def list_roles(self) -> list[Role]:
        """List every role known to the server."""
        response = self._require_service().select_role(role=None, include_user_info=False)
        handle_status(getattr(response, "status", None))
        return [Role(name=result.role.name) for result in (response.results or [])]

    def list_users(self) -> list[User]:
        """List every user known to the server."""
        response = self._require_service().select_user(user=None, include_role_info=False)
        handle_status(getattr(response, "status", None))
        return [User(name=result.user.name) for result in (response.results or [])]

    def _operate_privilege(
        self, role: str, object_type: int, object_name: str, kind: int
    ) -> None:
        handle_status(
            self._require_service().operate_privilege(
                role=role,
                object=_object_type_name(object_type),
                object_name=object_name,
                type=kind,
            )
        )

    def grant(self, role: str, object_type: int, object_name: str) -> None:
        """Grant a role privileges on an object."""
        self._operate_privilege(role, object_type, object_name, PRIVILEGE_GRANT)

    def revoke(self, role: str, object_type: int, object_name: str) -> None:
        """Revoke a role's privileges on an object."""
        self._operate_privilege(role, object_type, object_name, PRIVILEGE_REVOKE)