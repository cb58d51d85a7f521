"""인증 서비스.

가입, 로그인, 온보딩(초대 수락/기본 테넌트 가입), 비밀번호 변경과 재설정, 이메일
인증을 처리합니다. 이메일 발송은 하지 않으며 생성된 토큰을 그대로 리턴합니다.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

from visitorhub.config import Config, get_config
from visitorhub.context import RequestContext
from visitorhub.core import (
    AbstractUnitOfWork,
    AuthenticationError,
    InvalidCredentialsError,
    UniqueConstraintError,
    ValidationError,
)
from visitorhub.domain.models import Roles, User
from visitorhub.logging import get_logger
from visitorhub.security import create_token, decode_token, hash_password, verify_password
from visitorhub.services import tenant as tenant_service
from visitorhub.utils import as_utc, generate_token, utcnow

logger = get_logger("visitorhub.services.auth")

TOKEN_EXPIRES_IN = timedelta(hours=24)
"""비밀번호 재설정/이메일 인증 토큰의 유효 시간."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


def signup(
    email: str,
    password: str,
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    invitation_token: Optional[str] = None,
    tenant_id: Optional[str] = None,
    config: Optional[Config] = None,
) -> str:
    """이메일과 비밀번호로 가입하고 인증 토큰을 리턴합니다.

    초대받아 비밀번호 없이 만들어진 사용자라면 비밀번호만 설정합니다.

    Raises:
        ValidationError: 이미 가입된 이메일.
    """
    config = config or get_config()
    email = normalize_email(email)

    with uow:
        try:
            users = uow[User]
            hashed = hash_password(password, config.bcrypt_rounds)

            user = users.get(email=email)
            if user:
                if user.password:
                    raise ValidationError(ctx.language, "auth.emailAlreadyInUse")
                user = users.update(user.id, {"password": hashed}, ctx.with_user(user))
            else:
                user = users.create(
                    {
                        "email": email,
                        "first_name": email.split("@")[0],
                        "password": hashed,
                    },
                    ctx,
                )

            handle_onboard(user, invitation_token, tenant_id, uow, ctx, config)
            uow.commit()
        except Exception as error:
            uow.rollback()
            if isinstance(error, UniqueConstraintError) and error.field == "email":
                raise ValidationError(ctx.language, "auth.emailAlreadyInUse") from error
            raise

    return create_token(user.id, config)


def signin(
    email: str,
    password: str,
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    invitation_token: Optional[str] = None,
    tenant_id: Optional[str] = None,
    config: Optional[Config] = None,
) -> str:
    """이메일과 비밀번호를 확인하고 인증 토큰을 리턴합니다.

    없는 사용자, 비밀번호가 없는 사용자, 비밀번호 불일치는 모두 같은
    :class:`InvalidCredentialsError` 로 실패합니다.
    """
    config = config or get_config()
    email = normalize_email(email)

    with uow:
        try:
            user = uow[User].get(email=email)
            if not verify_password(password, user.password if user else None):
                raise InvalidCredentialsError(ctx.language)
            assert user

            handle_onboard(user, invitation_token, tenant_id, uow, ctx, config)
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return create_token(user.id, config)


def handle_onboard(
    user: User,
    invitation_token: Optional[str],
    tenant_id: Optional[str],
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    config: Optional[Config] = None,
) -> None:
    """가입/로그인 직후 초대 수락, 기본 테넌트 가입 같은 온보딩을 처리합니다.

    열린 UnitOfWork 안에서 실행되며 커밋은 호출자가 합니다.
    """
    config = config or get_config()
    ctx = ctx.with_user(user)

    if invitation_token:
        try:
            tenant_service.join_using_invitation(invitation_token, uow, ctx)
        except ValidationError as e:
            # 초대 수락 실패로 가입/로그인이 막히지는 않습니다.
            logger.warning("invitation not accepted for %s: %s", user.email, e.message)

    if config.is_multi_tenant and tenant_id:
        # 방문자가 스스로 가입할 수 있도록 기본 역할은 visitor 입니다.
        tenant_service.join_with_default_roles_or_ask_approval(
            tenant_id, [Roles.VISITOR], uow, ctx
        )

    if config.is_single_tenant:
        tenant_service.join_default_using_invited_email(uow, ctx)
        tenant_service.create_or_join_default([Roles.VISITOR], uow, ctx)


def find_by_token(
    token: str,
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    config: Optional[Config] = None,
) -> User:
    """토큰의 사용자를 찾습니다.

    Raises:
        AuthenticationError: 토큰이 잘못되었거나 사용자가 없는 경우.
    """
    payload = decode_token(token, config, ctx.language)
    with uow:
        user = uow[User].get(payload["sub"])
    if not user:
        raise AuthenticationError(ctx.language)
    return user


def change_password(
    old_password: str,
    new_password: str,
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    config: Optional[Config] = None,
) -> User:
    config = config or get_config()

    with uow:
        try:
            user = uow[User].get(ctx.user_id) if ctx.user_id else None
            if not user or not verify_password(old_password, user.password):
                raise ValidationError(ctx.language, "auth.passwordChange.invalidPassword")

            user = uow[User].update(
                user.id,
                {"password": hash_password(new_password, config.bcrypt_rounds)},
                ctx,
            )
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return user


def generate_password_reset_token(
    email: str, uow: AbstractUnitOfWork, ctx: RequestContext
) -> str:
    """비밀번호 재설정 토큰을 만들어 리턴합니다."""
    return _generate_user_token(
        email,
        "password_reset_token",
        "auth.passwordReset.error",
        uow,
        ctx,
    )


def password_reset(
    token: str,
    password: str,
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
    config: Optional[Config] = None,
) -> User:
    """재설정 토큰을 확인하고 비밀번호를 바꿉니다. 토큰은 한 번만 쓸 수 있습니다."""
    config = config or get_config()

    with uow:
        try:
            user = _find_by_valid_token(uow, "password_reset_token", token)
            if not user:
                raise ValidationError(ctx.language, "auth.passwordReset.invalidToken")

            user = uow[User].update(
                user.id,
                {
                    "password": hash_password(password, config.bcrypt_rounds),
                    "password_reset_token": None,
                    "password_reset_token_expires_at": None,
                },
                ctx.with_user(user),
            )
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return user


def generate_email_verification_token(
    email: str, uow: AbstractUnitOfWork, ctx: RequestContext
) -> str:
    """이메일 인증 토큰을 만들어 리턴합니다."""
    return _generate_user_token(
        email,
        "email_verification_token",
        "auth.emailAddressVerificationEmail.error",
        uow,
        ctx,
    )


def verify_email(token: str, uow: AbstractUnitOfWork, ctx: RequestContext) -> User:
    """이메일 인증 토큰을 확인하고 사용자의 이메일을 인증된 상태로 바꿉니다.

    Raises:
        ValidationError: 토큰이 잘못되었거나 만료된 경우, 또는 다른 사용자로
            로그인되어 있는 경우.
    """
    with uow:
        try:
            user = _find_by_valid_token(uow, "email_verification_token", token)
            if not user:
                raise ValidationError(
                    ctx.language, "auth.emailAddressVerificationEmail.invalidToken"
                )

            if ctx.current_user and ctx.user_id != user.id:
                raise ValidationError(
                    ctx.language,
                    "auth.emailAddressVerificationEmail.signedInAsWrongUser",
                    user.email,
                    ctx.current_user.email,
                )

            user = uow[User].update(
                user.id,
                {
                    "email_verified": True,
                    "email_verification_token": None,
                    "email_verification_token_expires_at": None,
                },
                ctx.with_user(user),
            )
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return user


def _generate_user_token(
    email: str,
    field: str,
    not_found_message_code: str,
    uow: AbstractUnitOfWork,
    ctx: RequestContext,
) -> str:
    token = generate_token()

    with uow:
        try:
            user = uow[User].get(email=normalize_email(email))
            if not user:
                raise ValidationError(ctx.language, not_found_message_code)

            uow[User].update(
                user.id,
                {field: token, f"{field}_expires_at": utcnow() + TOKEN_EXPIRES_IN},
                ctx.with_user(user),
            )
            uow.commit()
        except Exception:
            uow.rollback()
            raise

    return token


def _find_by_valid_token(uow: AbstractUnitOfWork, field: str, token: str) -> Optional[User]:
    if not token:
        return None

    user = uow[User].get(**{field: token})
    if not user:
        return None

    expires_at = as_utc(getattr(user, f"{field}_expires_at"))
    if not expires_at or expires_at < utcnow():
        return None
    return user
