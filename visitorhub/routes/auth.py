"""인증 엔드포인트."""
from fastapi import Depends

from visitorhub.api import app
from visitorhub.context import RequestContext
from visitorhub.core import AbstractUnitOfWork
from visitorhub.logging import get_logger
from visitorhub.routes.deps import get_context, get_uow, get_user_context
from visitorhub.schema import (
    ChangePasswordSchema,
    CurrentUserOut,
    EmailSchema,
    PasswordResetSchema,
    SignInSchema,
    SignUpSchema,
    TenantUserOut,
    TokenOut,
    UserOut,
    VerifyEmailSchema,
)
from visitorhub.services import auth
from visitorhub.services.tenant import list_memberships

logger = get_logger("visitorhub.routes.auth")


@app.post("/api/auth/sign-up", response_model=TokenOut)
def sign_up(
    req: SignUpSchema,
    ctx: RequestContext = Depends(get_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """``POST /api/auth/sign-up`` 가입 후 인증 토큰을 리턴합니다."""
    token = auth.signup(
        req.email,
        req.password,
        uow,
        ctx,
        invitation_token=req.invitation_token,
        tenant_id=req.tenant_id,
    )
    return TokenOut(token=token)


@app.post("/api/auth/sign-in", response_model=TokenOut)
def sign_in(
    req: SignInSchema,
    ctx: RequestContext = Depends(get_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    token = auth.signin(
        req.email,
        req.password,
        uow,
        ctx,
        invitation_token=req.invitation_token,
        tenant_id=req.tenant_id,
    )
    return TokenOut(token=token)


@app.get("/api/auth/me", response_model=CurrentUserOut)
def me(
    ctx: RequestContext = Depends(get_user_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """현재 사용자와 소속 테넌트 멤버십 목록."""
    assert ctx.current_user
    user = UserOut.model_validate(ctx.current_user)
    memberships = list_memberships(uow, ctx.current_user.id)
    return CurrentUserOut(
        **user.model_dump(),
        tenants=[TenantUserOut.model_validate(m) for m in memberships],
    )


@app.put("/api/auth/change-password", response_model=UserOut)
def change_password(
    req: ChangePasswordSchema,
    ctx: RequestContext = Depends(get_user_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    user = auth.change_password(req.old_password, req.new_password, uow, ctx)
    return UserOut.model_validate(user)


@app.post("/api/auth/send-password-reset-email", status_code=202)
def send_password_reset_email(
    req: EmailSchema,
    ctx: RequestContext = Depends(get_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """비밀번호 재설정 토큰을 만듭니다.

    토큰은 메일로만 전달되어야 하므로 응답에 포함하지 않습니다.
    """
    auth.generate_password_reset_token(req.email, uow, ctx)
    logger.info("password reset token generated for %s", req.email)
    return {}


@app.put("/api/auth/password-reset", response_model=UserOut)
def password_reset(
    req: PasswordResetSchema,
    ctx: RequestContext = Depends(get_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    user = auth.password_reset(req.token, req.password, uow, ctx)
    return UserOut.model_validate(user)


@app.post("/api/auth/send-email-address-verification-email", response_model=TokenOut)
def send_email_address_verification_email(
    ctx: RequestContext = Depends(get_user_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """현재 사용자의 이메일 인증 토큰을 만들어 리턴합니다."""
    assert ctx.current_user
    token = auth.generate_email_verification_token(ctx.current_user.email, uow, ctx)
    return TokenOut(token=token)


@app.put("/api/auth/verify-email", response_model=UserOut)
def verify_email(
    req: VerifyEmailSchema,
    ctx: RequestContext = Depends(get_context),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    user = auth.verify_email(req.token, uow, ctx)
    return UserOut.model_validate(user)
