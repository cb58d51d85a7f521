"""에러 클래스 모듈.

사용자에게 노출되는 에러는 모두 메시지 키를 받아 :func:`visitorhub.i18n.i18n` 으로
번역된 문구를 ``message`` 에 담습니다.
"""
from __future__ import annotations

from typing import Any, Optional

from visitorhub.i18n import i18n


class VisitorHubError(Exception):
    """``VisitorHub`` 와 관련된 모든 에러의 기본 클래스."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LocalizedError(VisitorHubError):
    """메시지 카탈로그를 이용해 번역되는 에러."""

    default_message_code = "errors.defaultErrorMessage"

    def __init__(
        self,
        language: Optional[str] = None,
        message_code: Optional[str] = None,
        *args: Any,
    ):
        self.message_code = message_code or self.default_message_code
        super().__init__(i18n(language, self.message_code, *args))


class ValidationError(LocalizedError):
    """잘못된 입력, 중복된 유니크 필드, 중복 import hash 등에 대한 에러 (400)."""

    status_code = 400
    default_message_code = "errors.validation.message"


class InvalidCredentialsError(ValidationError):
    """인증 실패.

    계정 존재 여부가 드러나지 않도록 어떤 검사에서 실패했는지 알려주지 않습니다.
    """

    default_message_code = "auth.invalidCredentials"

    def __init__(self, language: Optional[str] = None):
        super().__init__(language, self.default_message_code)


class AuthenticationError(LocalizedError):
    """만료되었거나 잘못된 토큰 (401)."""

    status_code = 401
    default_message_code = "auth.invalidToken"


class ForbiddenError(LocalizedError):
    """권한 없음 (403)."""

    status_code = 403
    default_message_code = "errors.forbidden.message"


class NotFoundError(LocalizedError):
    """주어진 id 에 해당하는 레코드가 없음 (404)."""

    status_code = 404
    default_message_code = "errors.notFound.message"


class TransactionClosedError(VisitorHubError):
    """이미 커밋 또는 롤백된 UnitOfWork 에 작업을 요청했을 때 발생합니다.

    프로그래밍 오류이므로 번역하지 않습니다. API 는 일반 에러 메시지로 응답합니다.
    """

    def __init__(self, message: str = "transaction is closed"):
        super().__init__(message)


class UniqueConstraintError(VisitorHubError):
    """영구 저장소의 유니크 제약 조건 위반.

    레포지터리에서 한 번만 분류되며, 서비스 레이어에서 항상 :class:`ValidationError`
    로 변환됩니다.
    """

    def __init__(self, entity_name: str, field: str):
        super().__init__(f"unique constraint violated: {entity_name}.{field}")
        self.entity_name = entity_name
        self.field = field