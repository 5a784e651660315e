"""Role gate for privileged tenant operations (invite, upgrade)."""

from collections.abc import Iterable

from app.core.errors import InsufficientPermissions
from app.models.user import UserRole
from app.services.isolation import IsolationContext


class RoleGate:
    """Permit an operation only for users holding one of ``required_roles``.

    Takes a resolved ``IsolationContext`` rather than a bare role, so a role
    is only ever checked within the caller's own tenant.
    """

    def __init__(self, required_roles: Iterable[UserRole]) -> None:
        self.required_roles = frozenset(UserRole(r) for r in required_roles)

    def check(self, context: IsolationContext) -> IsolationContext:
        if context.role not in self.required_roles:
            raise InsufficientPermissions(
                f"Access denied. Requires role: {', '.join(sorted(self.required_roles))}."
            )
        return context
