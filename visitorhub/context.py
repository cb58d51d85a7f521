"""요청 컨텍스트.

현재 사용자, 현재 테넌트, 언어 정보를 담아 서비스와 레포지터리 호출에 명시적으로
전달되는 값 객체입니다. 전역 상태로 보관하지 않습니다.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from visitorhub.domain.models import Tenant, TenantUser, User


@dataclass(frozen=True)
class RequestContext:
    language: str = "en"
    current_user: Optional[User] = None
    current_tenant: Optional[Tenant] = None
    membership: Optional[TenantUser] = None
    """현재 사용자의 현재 테넌트 멤버십."""

    @property
    def user_id(self) -> Optional[str]:
        return self.current_user.id if self.current_user else None

    @property
    def tenant_id(self) -> Optional[str]:
        return self.current_tenant.id if self.current_tenant else None

    @property
    def roles(self) -> list[str]:
        if not self.membership or self.membership.status != "active":
            return []
        return list(self.membership.roles or [])

    def with_user(self, user: Optional[User]) -> RequestContext:
        return replace(self, current_user=user)

    def with_tenant(
        self, tenant: Optional[Tenant], membership: Optional[TenantUser] = None
    ) -> RequestContext:
        return replace(self, current_tenant=tenant, membership=membership)
