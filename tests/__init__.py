from __future__ import annotations

import uuid

from visitorhub.context import RequestContext
from visitorhub.domain.models import Tenant, TenantUser, TenantUserStatus, User


def random_suffix() -> str:
    """랜덤 ID뒤에 붙일 UUID 기반의 6자리 임의의 ID를 생성합니다."""
    return uuid.uuid4().hex[:6]


def random_email(name: str = "user") -> str:
    """임의의 이메일 주소를 생성합니다."""
    return f"{name}-{random_suffix()}@example.com"


def random_name(prefix: str = "name") -> str:
    return f"{prefix}-{random_suffix()}"


def make_context(roles: list[str], language: str = "en") -> RequestContext:
    """저장소와 무관한 사용자/테넌트/멤버십으로 컨텍스트를 만듭니다."""
    user = User(email=random_email(), first_name="tester")
    tenant = Tenant(name=random_name("tenant"))
    membership = TenantUser(
        tenant_id=tenant.id,
        user_id=user.id,
        roles=roles,
        status=TenantUserStatus.ACTIVE,
    )
    return RequestContext(
        language=language,
        current_user=user,
        current_tenant=tenant,
        membership=membership,
    )
