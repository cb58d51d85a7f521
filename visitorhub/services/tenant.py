"""테넌트, 멤버십(역할), 플랜 서비스.

``create_tenant`` 처럼 공개된 함수는 각자 하나의 트랜잭션(``with uow:``)을 엽니다.
``join_*`` / ``create_or_join_default`` 같은 온보딩 함수는 호출자가 이미 열어 둔
UnitOfWork 안에서 실행되며 커밋하지 않습니다.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from visitorhub.context import RequestContext
from visitorhub.core import (
    AbstractUnitOfWork,
    FindQuery,
    ForbiddenError,
    NotFoundError,
    UniqueConstraintError,
    ValidationError,
)
from visitorhub.domain.models import (
    Plans,
    Roles,
    Tenant,
    TenantUser,
    TenantUserStatus,
    User,
)
from visitorhub.logging import get_logger
from visitorhub.utils import generate_token

logger = get_logger("visitorhub.services.tenant")

DEFAULT_TENANT = {"name": "default", "url": "default"}


def validate_roles(roles: Iterable[str], language: Optional[str]) -> list[str]:
    """역할 목록을 검사하고 중복을 제거한 리스트를 리턴합니다."""
    result: list[str] = []
    for role in roles:
        if role not in Roles.values():
            raise ValidationError(language, "tenant.errors.invalidRole", role)
        if role not in result:
            result.append(role)
    return result


def status_for(roles: list[str], current: Optional[str] = None) -> str:
    """역할 목록에 맞는 멤버십 상태. 초대 중인 멤버십은 상태를 유지합니다."""
    if current == TenantUserStatus.INVITED:
        return current
    return TenantUserStatus.ACTIVE if roles else TenantUserStatus.EMPTY_PERMISSIONS


def find_membership(
    uow: AbstractUnitOfWork, tenant_id: str, user_id: str
) -> Optional[TenantUser]:
    return uow[TenantUser].get(tenant_id=tenant_id, user_id=user_id)


def list_memberships(uow: AbstractUnitOfWork, user_id: str) -> list[TenantUser]:
    with uow:
        return uow[TenantUser].filter(user_id=user_id)


def _add_membership(
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    tenant: Tenant,
    user_id: str,
    roles: list[str],
    status: Optional[str] = None,
    invitation_token: Optional[str] = None,
) -> TenantUser:
    return uow[TenantUser].create(
        {
            "user_id": user_id,
            "roles": roles,
            "status": status or status_for(roles),
            "invitation_token": invitation_token,
        },
        ctx.with_tenant(tenant),
    )


def _get_tenant(uow: AbstractUnitOfWork, ctx: RequestContext, tenant_id: str) -> Tenant:
    tenant = uow[Tenant].find_by_id(tenant_id, ctx)
    if not tenant:
        raise NotFoundError(ctx.language)
    return tenant


def _handle_unique_url(error: Exception, ctx: RequestContext) -> None:
    if isinstance(error, UniqueConstraintError) and error.field == "url":
        raise ValidationError(ctx.language, "tenant.url.exists") from error


def _validate_plan(data: dict[str, Any], ctx: RequestContext) -> None:
    plan = data.get("plan")
    if plan is not None and plan not in Plans.values():
        raise ValidationError(ctx.language, "tenant.errors.invalidPlan", plan)


def create_tenant(data: dict[str, Any], uow: AbstractUnitOfWork, ctx: RequestContext) -> Tenant:
    """테넌트를 만들고 현재 사용자를 관리자로 등록합니다.

    새 테넌트는 항상 ``free`` 플랜으로 시작합니다.
    """
    if not ctx.current_user:
        raise ForbiddenError(ctx.language)

    with uow:
        try:
            tenant = _create_tenant(data, uow, ctx)
            uow.commit()
        except Exception as error:
            uow.rollback()
            _handle_unique_url(error, ctx)
            raise

    return tenant


def _create_tenant(data: dict[str, Any], uow: AbstractUnitOfWork, ctx: RequestContext) -> Tenant:
    assert ctx.user_id
    values = {**data, "plan": Plans.FREE, "plan_status": "active"}
    tenant = uow[Tenant].create(values, ctx)
    _add_membership(uow, ctx, tenant, ctx.user_id, [Roles.ADMIN])
    return tenant


def update_tenant(
    tenant_id: str, data: dict[str, Any], uow: AbstractUnitOfWork, ctx: RequestContext
) -> Tenant:
    """테넌트 정보를 수정합니다.

    Raises:
        ValidationError: 잘못된 플랜 이름 또는 이미 사용 중인 URL.
        NotFoundError: 테넌트가 없는 경우.
    """
    _validate_plan(data, ctx)

    with uow:
        try:
            tenant = uow[Tenant].update(tenant_id, data, ctx)
            uow.commit()
        except Exception as error:
            uow.rollback()
            _handle_unique_url(error, ctx)
            raise

    return tenant


def find_tenant(tenant_id: str, uow: AbstractUnitOfWork, ctx: RequestContext) -> Optional[Tenant]:
    with uow:
        return uow[Tenant].find_by_id(tenant_id, ctx)


def invite(
    tenant_id: str,
    emails: Iterable[str],
    roles: Iterable[str],
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
) -> list[TenantUser]:
    """이메일 목록의 사용자들을 테넌트에 초대합니다.

    가입하지 않은 이메일은 비밀번호 없는 사용자로 만들어 두고, 초대 토큰을 가진
    ``invited`` 멤버십을 만듭니다. 이미 멤버인 사용자는 역할만 합쳐집니다.
    """
    roles = validate_roles(roles, ctx.language)

    memberships: list[TenantUser] = []
    with uow:
        try:
            tenant = _get_tenant(uow, ctx, tenant_id)
            tenant_ctx = ctx.with_tenant(tenant, ctx.membership)

            for email in emails:
                email = email.strip().lower()
                user = uow[User].get(email=email)
                if not user:
                    user = uow[User].create(
                        {"email": email, "first_name": email.split("@")[0]}, ctx
                    )

                membership = find_membership(uow, tenant.id, user.id)
                if not membership:
                    membership = _add_membership(
                        uow,
                        ctx,
                        tenant,
                        user.id,
                        roles,
                        status=TenantUserStatus.INVITED,
                        invitation_token=generate_token(),
                    )
                else:
                    merged = list(dict.fromkeys([*membership.roles, *roles]))
                    membership = uow[TenantUser].update(
                        membership.id,
                        {"roles": merged, "status": status_for(merged, membership.status)},
                        tenant_ctx,
                    )
                memberships.append(membership)

            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return memberships


def accept_invitation(
    token: str, uow: AbstractUnitOfWork, ctx: RequestContext
) -> TenantUser:
    """초대 토큰으로 현재 사용자를 테넌트의 멤버로 활성화합니다."""
    with uow:
        try:
            membership = join_using_invitation(token, uow, ctx)
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return membership


def join_using_invitation(
    token: str, uow: AbstractUnitOfWork, ctx: RequestContext
) -> TenantUser:
    """열린 UnitOfWork 안에서 초대를 수락합니다.

    다른 이메일로 보낸 초대라도 현재 사용자에게 넘겨집니다. 현재 사용자가 이미
    그 테넌트의 멤버라면 초대받은 역할을 기존 멤버십에 합치고 초대는 삭제합니다.
    """
    if not ctx.current_user:
        raise ForbiddenError(ctx.language)

    invitation = uow[TenantUser].get(invitation_token=token) if token else None
    if not invitation or invitation.status != TenantUserStatus.INVITED:
        raise ValidationError(ctx.language, "tenant.invitation.invalidToken")

    tenant = uow[Tenant].get(invitation.tenant_id)
    tenant_ctx = ctx.with_tenant(tenant)

    existing = find_membership(uow, invitation.tenant_id, ctx.current_user.id)
    if existing and existing is not invitation:
        merged = list(dict.fromkeys([*existing.roles, *invitation.roles]))
        uow[TenantUser].destroy(invitation.id, tenant_ctx)
        return uow[TenantUser].update(
            existing.id,
            {"roles": merged, "status": status_for(merged)},
            tenant_ctx,
        )

    return uow[TenantUser].update(
        invitation.id,
        {
            "user_id": ctx.current_user.id,
            "status": status_for(invitation.roles),
            "invitation_token": None,
        },
        tenant_ctx,
    )


def update_roles(
    tenant_id: str,
    user_id: str,
    roles: Iterable[str],
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
) -> TenantUser:
    """멤버의 역할을 교체합니다.

    Raises:
        ValidationError: 관리자가 자기 자신의 관리자 역할을 제거하려는 경우.
        NotFoundError: 테넌트에 해당 사용자가 없는 경우.
    """
    roles = validate_roles(roles, ctx.language)

    with uow:
        try:
            membership = find_membership(uow, tenant_id, user_id)
            if not membership:
                raise NotFoundError(ctx.language, "user.errors.userNotFound")

            if (
                user_id == ctx.user_id
                and Roles.ADMIN in membership.roles
                and Roles.ADMIN not in roles
            ):
                raise ValidationError(ctx.language, "user.errors.revokingOwnPermission")

            tenant = _get_tenant(uow, ctx, tenant_id)
            membership = uow[TenantUser].update(
                membership.id,
                {"roles": roles, "status": status_for(roles, membership.status)},
                ctx.with_tenant(tenant, ctx.membership),
            )
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return membership


def join_with_default_roles_or_ask_approval(
    tenant_id: str, roles: list[str], uow: AbstractUnitOfWork, ctx: RequestContext
) -> Optional[TenantUser]:
    """현재 사용자를 테넌트에 기본 역할로 가입시킵니다.

    역할이 비어 있으면 관리자의 승인이 필요한 ``empty-permissions`` 상태로
    가입합니다. 이미 초대된 경우 초대를 수락하고, 이미 멤버라면 아무것도 하지
    않습니다.
    """
    assert ctx.user_id
    tenant = _get_tenant(uow, ctx, tenant_id)

    membership = find_membership(uow, tenant.id, ctx.user_id)
    if membership:
        if membership.status == TenantUserStatus.INVITED and membership.invitation_token:
            return join_using_invitation(membership.invitation_token, uow, ctx)
        return membership

    return _add_membership(uow, ctx, tenant, ctx.user_id, roles)


def _find_default_tenant(uow: AbstractUnitOfWork, ctx: RequestContext) -> Optional[Tenant]:
    tenants, _ = uow[Tenant].find_and_count_all(
        FindQuery(limit=1, order_by="created_at_ASC"), ctx
    )
    return tenants[0] if tenants else None


def join_default_using_invited_email(
    uow: AbstractUnitOfWork, ctx: RequestContext
) -> Optional[TenantUser]:
    """단일 테넌트 모드에서 초대 토큰 없이 초대받은 이메일로 로그인한 경우
    기본 테넌트의 초대를 자동으로 수락합니다."""
    assert ctx.user_id
    tenant = _find_default_tenant(uow, ctx)
    if not tenant:
        return None

    membership = find_membership(uow, tenant.id, ctx.user_id)
    if not membership or membership.status != TenantUserStatus.INVITED:
        return None

    return uow[TenantUser].update(
        membership.id,
        {"status": status_for(membership.roles), "invitation_token": None},
        ctx.with_tenant(tenant),
    )


def create_or_join_default(
    roles: list[str], uow: AbstractUnitOfWork, ctx: RequestContext
) -> TenantUser:
    """기본 테넌트에 가입합니다. 테넌트가 하나도 없으면 현재 사용자를 관리자로
    하는 기본 테넌트를 만듭니다."""
    assert ctx.user_id
    tenant = _find_default_tenant(uow, ctx)

    if tenant:
        membership = find_membership(uow, tenant.id, ctx.user_id)
        if membership:
            return membership
        return _add_membership(uow, ctx, tenant, ctx.user_id, roles)

    tenant = _create_tenant(DEFAULT_TENANT, uow, ctx)
    logger.info("default tenant created by %s", ctx.user_id)
    membership = find_membership(uow, tenant.id, ctx.user_id)
    assert membership
    return membership
