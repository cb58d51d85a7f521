import secrets
from datetime import datetime, timezone
from typing import Optional

from colorama import init as init_colors

init_colors()  # For Windows environment

from colorama import Fore, Style  # noqa: E402


def fg(text, color=Fore.WHITE):
    """텍스트를 지정된 ANSI 컬러로 출력합니다."""
    return f"{color}{text}{Fore.RESET}"


def bold(text, color=Fore.WHITE):
    """텍스트를 지정된 ANSI 컬러와 밝기 효과를 주어 출력합니다."""
    return f"{Style.BRIGHT}{color}{text}{Style.RESET_ALL}"


def utcnow() -> datetime:
    """타임존 정보가 있는 현재 UTC 시각."""
    return datetime.now(timezone.utc)


def generate_token() -> str:
    """초대, 이메일 인증, 비밀번호 재설정에 쓰이는 무작위 토큰."""
    return secrets.token_hex(20)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """타임존 정보가 없는 시각(SQLite 에서 읽은 값)을 UTC 로 간주합니다."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
