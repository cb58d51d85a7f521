"""역할(role) 기반 권한 검사."""
from __future__ import annotations

from visitorhub.context import RequestContext
from visitorhub.core import ForbiddenError
from visitorhub.domain.models import Roles

_ALL = [Roles.ADMIN, Roles.CUSTOM, Roles.HOST, Roles.VISITOR]
_STAFF = [Roles.ADMIN, Roles.CUSTOM, Roles.HOST]


def _crud(entity: str, read: list[str], write: list[str]) -> dict[str, list[str]]:
    return {
        f"{entity}Read": read,
        f"{entity}Autocomplete": read,
        f"{entity}Create": write,
        f"{entity}Edit": write,
        f"{entity}Import": [Roles.ADMIN, Roles.CUSTOM],
        f"{entity}Destroy": [Roles.ADMIN, Roles.CUSTOM],
    }


PERMISSIONS: dict[str, list[str]] = {
    "tenantEdit": [Roles.ADMIN],
    "tenantRead": _ALL,
    "planEdit": [Roles.ADMIN],
    "userCreate": [Roles.ADMIN],
    "userEdit": [Roles.ADMIN],
    "userRead": [Roles.ADMIN],
    "auditLogRead": [Roles.ADMIN],
    **_crud("visitor", read=_STAFF, write=_ALL),
    **_crud("host", read=_ALL, write=_STAFF),
    **_crud("meeting", read=_STAFF, write=_ALL),
    **_crud("cdcQuestionnaire", read=_STAFF, write=_ALL),
}
"""권한 이름 -> 허용된 역할 목록."""


class PermissionChecker:
    def __init__(self, ctx: RequestContext):
        self.ctx = ctx

    def has(self, permission: str) -> bool:
        allowed = PERMISSIONS.get(permission)
        if allowed is None:
            raise KeyError(f"unknown permission: {permission}")
        return any(role in allowed for role in self.ctx.roles)

    def validate_has(self, permission: str) -> None:
        """권한이 없으면 :class:`ForbiddenError` 를 발생시킵니다."""
        if not self.has(permission):
            raise ForbiddenError(self.ctx.language)
