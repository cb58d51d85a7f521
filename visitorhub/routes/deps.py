"""엔드포인트 공통 의존성.

요청마다 :class:`RequestContext` 를 만들어 서비스에 명시적으로 넘겨줍니다.
"""
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from visitorhub.api import request_language
from visitorhub.context import RequestContext
from visitorhub.core import (
    AbstractUnitOfWork,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
)
from visitorhub.domain.models import Tenant, TenantUserStatus
from visitorhub.permissions import PermissionChecker
from visitorhub.services import auth
from visitorhub.services.tenant import find_membership
from visitorhub.uow import SqlAlchemyUnitOfWork

bearer = HTTPBearer(auto_error=False)


def get_uow() -> AbstractUnitOfWork:
    return SqlAlchemyUnitOfWork()


def get_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    uow: AbstractUnitOfWork = Depends(get_uow),
) -> RequestContext:
    """Bearer 토큰이 있으면 사용자를 찾아 컨텍스트에 담습니다."""
    ctx = RequestContext(language=request_language(request))
    if not credentials:
        return ctx

    user = auth.find_by_token(credentials.credentials, uow, ctx)
    return ctx.with_user(user)


def get_user_context(ctx: RequestContext = Depends(get_context)) -> RequestContext:
    """로그인한 사용자가 필요한 엔드포인트용."""
    if not ctx.current_user:
        raise AuthenticationError(ctx.language)
    return ctx


def get_tenant_context(
    tenant_id: str,
    ctx: RequestContext = Depends(get_user_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
) -> RequestContext:
    """경로의 ``tenant_id`` 테넌트와 현재 사용자의 멤버십을 컨텍스트에 담습니다.

    Raises:
        NotFoundError: 테넌트가 없는 경우.
        ForbiddenError: 활성 멤버가 아닌 경우.
    """
    assert ctx.user_id
    with uow:
        tenant = uow[Tenant].find_by_id(tenant_id, ctx)
        membership = find_membership(uow, tenant_id, ctx.user_id) if tenant else None

    if not tenant:
        raise NotFoundError(ctx.language)
    if not membership or membership.status != TenantUserStatus.ACTIVE:
        raise ForbiddenError(ctx.language)

    return ctx.with_tenant(tenant, membership)


def require(permission: str) -> Callable[..., RequestContext]:
    """현재 테넌트에서 ``permission`` 권한을 요구하는 의존성을 만듭니다."""

    def _check(ctx: RequestContext = Depends(get_tenant_context)) -> RequestContext:
        PermissionChecker(ctx).validate_has(permission)
        return ctx

    return _check
