# pylint: disable=redefined-outer-name
import pytest

from visitorhub.context import RequestContext
from visitorhub.core import ForbiddenError, NotFoundError, ValidationError
from visitorhub.domain.models import Roles, Tenant, TenantUser, TenantUserStatus, User
from visitorhub.services import tenant as tenant_service
from visitorhub.test.unit import FakeUnitOfWork
from tests import random_email


def add_user(uow: FakeUnitOfWork, email: str = "") -> User:
    user = User(email=email or random_email())
    uow.repos[User].add(user)
    return user


@pytest.fixture
def admin(fake_uow) -> User:
    return add_user(fake_uow, "admin@example.com")


@pytest.fixture
def admin_ctx(admin) -> RequestContext:
    return RequestContext(current_user=admin)


@pytest.fixture
def tenant(fake_uow, admin_ctx) -> Tenant:
    return tenant_service.create_tenant(
        {"name": "Lobby", "url": "lobby", "plan": "enterprise"}, fake_uow, admin_ctx
    )


def test_create_tenant_makes_creator_admin(fake_uow, admin, tenant):
    assert tenant.name == "Lobby"
    assert tenant.plan == "free"
    assert tenant.created_by_id == admin.id

    [membership] = fake_uow.repos[TenantUser].all()
    assert membership.tenant_id == tenant.id
    assert membership.user_id == admin.id
    assert membership.roles == [Roles.ADMIN]
    assert membership.status == TenantUserStatus.ACTIVE


def test_create_tenant_requires_user(fake_uow):
    with pytest.raises(ForbiddenError):
        tenant_service.create_tenant({"name": "Lobby"}, fake_uow, RequestContext())


def test_create_tenant_with_used_url(fake_uow, admin_ctx, tenant):
    with pytest.raises(ValidationError) as e:
        tenant_service.create_tenant({"name": "Copy", "url": "lobby"}, fake_uow, admin_ctx)

    assert e.value.message == "This workspace URL is already in use."
    assert fake_uow.repos[Tenant].all() == [tenant]
    assert len(fake_uow.repos[TenantUser].all()) == 1


def test_update_tenant(fake_uow, admin_ctx, tenant):
    updated = tenant_service.update_tenant(
        tenant.id, {"name": "Front Desk", "plan": "growth"}, fake_uow, admin_ctx
    )
    assert updated.name == "Front Desk"
    assert updated.plan == "growth"


def test_update_tenant_with_invalid_plan(fake_uow, admin_ctx, tenant):
    with pytest.raises(ValidationError) as e:
        tenant_service.update_tenant(tenant.id, {"plan": "gold"}, fake_uow, admin_ctx)
    assert e.value.message == "gold is not a valid plan."


def test_update_missing_tenant(fake_uow, admin_ctx):
    with pytest.raises(NotFoundError):
        tenant_service.update_tenant("missing", {"name": "x"}, fake_uow, admin_ctx)


def test_find_tenant(fake_uow, admin_ctx, tenant):
    assert tenant_service.find_tenant(tenant.id, fake_uow, admin_ctx) is tenant
    assert tenant_service.find_tenant("missing", fake_uow, admin_ctx) is None


def test_validate_roles():
    assert tenant_service.validate_roles(["host", "visitor", "host"], "en") == [
        "host",
        "visitor",
    ]
    with pytest.raises(ValidationError) as e:
        tenant_service.validate_roles(["owner"], "en")
    assert e.value.message == "owner is not a valid role."


def test_status_for():
    assert tenant_service.status_for([Roles.HOST]) == TenantUserStatus.ACTIVE
    assert tenant_service.status_for([]) == TenantUserStatus.EMPTY_PERMISSIONS
    assert (
        tenant_service.status_for([Roles.HOST], TenantUserStatus.INVITED)
        == TenantUserStatus.INVITED
    )


def test_invite_new_email_creates_user_and_invitation(fake_uow, admin_ctx, tenant):
    [invitation] = tenant_service.invite(
        tenant.id, [" Guest@Example.com "], [Roles.HOST], fake_uow, admin_ctx
    )

    guest = fake_uow.repos[User].get(email="guest@example.com")
    assert guest and guest.password is None
    assert invitation.user_id == guest.id
    assert invitation.tenant_id == tenant.id
    assert invitation.status == TenantUserStatus.INVITED
    assert invitation.invitation_token
    assert invitation.roles == [Roles.HOST]


def test_invite_existing_member_merges_roles(fake_uow, admin, admin_ctx, tenant):
    [membership] = tenant_service.invite(
        tenant.id, [admin.email], [Roles.HOST, Roles.ADMIN], fake_uow, admin_ctx
    )

    assert membership.roles == [Roles.ADMIN, Roles.HOST]
    assert membership.status == TenantUserStatus.ACTIVE
    assert membership.invitation_token is None
    assert len(fake_uow.repos[TenantUser].all()) == 1


def test_invite_with_invalid_role(fake_uow, admin_ctx, tenant):
    with pytest.raises(ValidationError):
        tenant_service.invite(tenant.id, ["a@example.com"], ["owner"], fake_uow, admin_ctx)
    assert fake_uow.repos[User].get(email="a@example.com") is None


def test_invite_to_missing_tenant(fake_uow, admin_ctx):
    with pytest.raises(NotFoundError):
        tenant_service.invite("missing", ["a@example.com"], [Roles.HOST], fake_uow, admin_ctx)


def test_accept_invitation(fake_uow, admin_ctx, tenant):
    [invitation] = tenant_service.invite(
        tenant.id, ["guest@example.com"], [Roles.HOST], fake_uow, admin_ctx
    )
    guest = fake_uow.repos[User].get(email="guest@example.com")

    membership = tenant_service.accept_invitation(
        invitation.invitation_token, fake_uow, RequestContext(current_user=guest)
    )

    assert membership.id == invitation.id
    assert membership.status == TenantUserStatus.ACTIVE
    assert membership.invitation_token is None


def test_accept_invitation_twice(fake_uow, admin_ctx, tenant):
    [invitation] = tenant_service.invite(
        tenant.id, ["guest@example.com"], [Roles.HOST], fake_uow, admin_ctx
    )
    token = invitation.invitation_token
    guest_ctx = RequestContext(current_user=fake_uow.repos[User].get(email="guest@example.com"))
    tenant_service.accept_invitation(token, fake_uow, guest_ctx)

    with pytest.raises(ValidationError) as e:
        tenant_service.accept_invitation(token, fake_uow, guest_ctx)
    assert e.value.message == "Invitation link is invalid or has already been used."


def test_accept_invitation_as_existing_member_merges_roles(fake_uow, admin, admin_ctx, tenant):
    guest = add_user(fake_uow, "guest@example.com")
    [invitation] = tenant_service.invite(
        tenant.id, [guest.email], [Roles.HOST], fake_uow, admin_ctx
    )

    # 관리자가 다른 이메일로 보낸 초대를 직접 수락합니다.
    membership = tenant_service.accept_invitation(
        invitation.invitation_token, fake_uow, admin_ctx
    )

    assert membership.user_id == admin.id
    assert membership.roles == [Roles.ADMIN, Roles.HOST]
    assert invitation not in fake_uow.repos[TenantUser].all()
    assert len(fake_uow.repos[TenantUser].all()) == 1


def test_accept_invitation_requires_user(fake_uow):
    with pytest.raises(ForbiddenError):
        tenant_service.accept_invitation("token", fake_uow, RequestContext())


def test_update_roles(fake_uow, admin_ctx, tenant):
    guest = add_user(fake_uow)
    tenant_service.invite(tenant.id, [guest.email], [Roles.HOST], fake_uow, admin_ctx)

    membership = tenant_service.update_roles(
        tenant.id, guest.id, [Roles.CUSTOM], fake_uow, admin_ctx
    )

    assert membership.roles == [Roles.CUSTOM]
    assert membership.status == TenantUserStatus.INVITED


def test_update_roles_to_empty(fake_uow, admin, tenant):
    other_admin = add_user(fake_uow)
    ctx = RequestContext(current_user=other_admin)

    membership = tenant_service.update_roles(tenant.id, admin.id, [], fake_uow, ctx)

    assert membership.roles == []
    assert membership.status == TenantUserStatus.EMPTY_PERMISSIONS


def test_admin_cannot_revoke_own_admin_role(fake_uow, admin, admin_ctx, tenant):
    with pytest.raises(ValidationError) as e:
        tenant_service.update_roles(tenant.id, admin.id, [Roles.HOST], fake_uow, admin_ctx)

    assert e.value.message == "You can't revoke your own admin permission."
    [membership] = fake_uow.repos[TenantUser].all()
    assert membership.roles == [Roles.ADMIN]


def test_update_roles_of_non_member(fake_uow, admin_ctx, tenant):
    stranger = add_user(fake_uow)
    with pytest.raises(NotFoundError) as e:
        tenant_service.update_roles(tenant.id, stranger.id, [Roles.HOST], fake_uow, admin_ctx)
    assert e.value.message == "User not found."


def test_join_with_empty_default_roles_asks_approval(fake_uow, tenant):
    user = add_user(fake_uow)
    ctx = RequestContext(current_user=user)

    with fake_uow:
        membership = tenant_service.join_with_default_roles_or_ask_approval(
            tenant.id, [], fake_uow, ctx
        )
        fake_uow.commit()

    assert membership.status == TenantUserStatus.EMPTY_PERMISSIONS


def test_onboarding_helpers_do_not_commit(fake_uow, tenant):
    user = add_user(fake_uow)
    ctx = RequestContext(current_user=user)

    with fake_uow:
        tenant_service.join_with_default_roles_or_ask_approval(
            tenant.id, [Roles.VISITOR], fake_uow, ctx
        )

    assert tenant_service.list_memberships(fake_uow, user.id) == []


def test_list_memberships(fake_uow, admin, tenant):
    [membership] = tenant_service.list_memberships(fake_uow, admin.id)
    assert membership.tenant_id == tenant.id
