"""비밀번호 해시와 JWT 토큰 발급/검증."""
from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from visitorhub.config import Config, get_config
from visitorhub.core import AuthenticationError
from visitorhub.utils import utcnow


@lru_cache(maxsize=None)
def dummy_hash(rounds: int) -> bytes:
    """존재하지 않는 사용자와 비교할 더미 해시.

    실제 비밀번호 해시와 같은 비용(``rounds``)으로 만들어야 비교 시간이 같습니다.
    """
    return bcrypt.hashpw(b"visitorhub-dummy-password", bcrypt.gensalt(rounds=rounds))


def _password_bytes(password: str) -> bytes:
    # bcrypt 는 72 바이트까지만 사용합니다.
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """비밀번호를 bcrypt 로 해시합니다."""
    rounds = rounds or get_config().bcrypt_rounds
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(
    password: str, hashed: Optional[str], rounds: Optional[int] = None
) -> bool:
    """비밀번호가 저장된 해시와 일치하는지 상수 시간 비교로 확인합니다.

    저장된 해시가 없으면 설정된 bcrypt 비용의 더미 해시와 비교한 뒤 ``False`` 를
    리턴합니다.
    """
    if not hashed:
        rounds = rounds or get_config().bcrypt_rounds
        bcrypt.checkpw(_password_bytes(password), dummy_hash(rounds))
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        # 저장된 값이 올바른 bcrypt 해시가 아닌 경우
        return False


def create_token(subject_id: str, config: Optional[Config] = None) -> str:
    """사용자 id 만 담은 서명된 토큰을 발급합니다."""
    config = config or get_config()
    now = utcnow()
    payload = {
        "sub": subject_id,
        "iat": now,
        "exp": now + timedelta(seconds=config.auth_jwt_expires_in),
    }
    return jwt.encode(
        payload, config.auth_jwt_secret, algorithm=config.auth_jwt_algorithm
    )


def decode_token(
    token: str, config: Optional[Config] = None, language: Optional[str] = None
) -> dict[str, Any]:
    """토큰의 서명과 만료 시간을 검사하고 payload 를 리턴합니다.

    Raises:
        AuthenticationError: 만료되었거나 형식이 잘못된 토큰.
    """
    config = config or get_config()
    try:
        payload = jwt.decode(
            token, config.auth_jwt_secret, algorithms=[config.auth_jwt_algorithm]
        )
    except JWTError as e:
        raise AuthenticationError(language) from e

    if not payload.get("sub"):
        raise AuthenticationError(language)
    return payload
