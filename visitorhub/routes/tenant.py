"""테넌트와 멤버 관리 엔드포인트."""
from fastapi import Depends

from visitorhub.api import app
from visitorhub.context import RequestContext
from visitorhub.core import AbstractUnitOfWork, NotFoundError
from visitorhub.permissions import PermissionChecker
from visitorhub.routes.deps import get_uow, get_user_context, require
from visitorhub.schema import (
    InviteSchema,
    RolesSchema,
    TenantIn,
    TenantOut,
    TenantUpdate,
    TenantUserOut,
)
from visitorhub.services import tenant as tenant_service


@app.post("/api/tenant", status_code=201, response_model=TenantOut)
def create_tenant(
    req: TenantIn,
    ctx: RequestContext = Depends(get_user_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """``POST /api/tenant`` 새 테넌트를 만들고 요청한 사용자를 관리자로 등록합니다."""
    tenant = tenant_service.create_tenant(req.model_dump(), uow, ctx)
    return TenantOut.model_validate(tenant)


@app.put("/api/tenant/invitation/{token}/accept", response_model=TenantUserOut)
def accept_invitation(
    token: str,
    ctx: RequestContext = Depends(get_user_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    membership = tenant_service.accept_invitation(token, uow, ctx)
    return TenantUserOut.model_validate(membership)


@app.get("/api/tenant/{tenant_id}", response_model=TenantOut)
def find_tenant(
    tenant_id: str,
    ctx: RequestContext = Depends(require("tenantRead")),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    tenant = tenant_service.find_tenant(tenant_id, uow, ctx)
    if not tenant:
        raise NotFoundError(ctx.language)
    return TenantOut.model_validate(tenant)


@app.put("/api/tenant/{tenant_id}", response_model=TenantOut)
def update_tenant(
    tenant_id: str,
    req: TenantUpdate,
    ctx: RequestContext = Depends(require("tenantEdit")),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    data = req.model_dump(exclude_unset=True)
    if "plan" in data:
        PermissionChecker(ctx).validate_has("planEdit")
    tenant = tenant_service.update_tenant(tenant_id, data, uow, ctx)
    return TenantOut.model_validate(tenant)


@app.post("/api/tenant/{tenant_id}/user", status_code=201, response_model=list[TenantUserOut])
def invite(
    tenant_id: str,
    req: InviteSchema,
    ctx: RequestContext = Depends(require("userCreate")),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """사용자들을 초대합니다. 이메일 발송은 하지 않으며 초대 토큰이 응답에 포함됩니다."""
    memberships = tenant_service.invite(tenant_id, req.emails, req.roles, uow, ctx)
    return [TenantUserOut.model_validate(m) for m in memberships]


@app.put("/api/tenant/{tenant_id}/user/{user_id}", response_model=TenantUserOut)
def update_roles(
    tenant_id: str,
    user_id: str,
    req: RolesSchema,
    ctx: RequestContext = Depends(require("userEdit")),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    membership = tenant_service.update_roles(tenant_id, user_id, req.roles, uow, ctx)
    return TenantUserOut.model_validate(membership)
