"""기본 환경 설정.

설정값은 다음 순서로 결정됩니다.

1. 클래스에 정의된 기본값
2. 현재 경로의 ``setup.cfg`` 파일의 ``[visitorhub]`` 섹션 (``name``, ``title``)
3. OS 환경변수 (``DATABASE_URL``, ``TENANT_MODE`` 등)
"""
from __future__ import annotations

import os
from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, Type

from sqlalchemy.pool import Pool, StaticPool

TenantMode = Literal["single", "multi", "multi-with-subdomain"]
TENANT_MODES = ("single", "multi", "multi-with-subdomain")
NOTIFICATION_BACKENDS = ("none", "webhook", "redis")


@dataclass
class SetupConfig:
    name: str
    title: Optional[str] = None


def load_setupcfg(path: Path) -> Optional[SetupConfig]:
    if (path / "setup.cfg").exists():
        # 현재 경로에 "setup.cfg" 파일이 있다면 [visitorhub] 섹션에서
        # name, title 정보를 읽습니다.
        config = ConfigParser()
        config.read(path / "setup.cfg")
        if "visitorhub" in config:
            return SetupConfig(**config["visitorhub"])
    return None


@dataclass
class RedisConnectInfo:
    host: str
    port: int

    @property
    def url(self) -> str:
        return f"redis://{self.host}:{self.port}"


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


@dataclass
class Config:
    """VisitorHub 앱 설정."""

    name: str = "visitorhub"
    title: str = "VisitorHub"
    db_url: str = "sqlite://"
    tenant_mode: TenantMode = "multi"
    auth_jwt_secret: str = "visitorhub-development-secret"
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_expires_in: int = 60 * 60 * 24 * 7
    """토큰 유효 시간(초)."""
    bcrypt_rounds: int = 12
    default_language: str = "en"
    notification_backend: str = "none"
    notification_webhook_url: Optional[str] = None
    notification_timeout: float = 5.0
    redis: RedisConnectInfo = field(
        default_factory=lambda: RedisConnectInfo(host="localhost", port=6379)
    )
    api_host: str = "127.0.0.1"
    api_port: int = 5000

    def __post_init__(self):
        if self.tenant_mode not in TENANT_MODES:
            raise ValueError(f"invalid tenant mode: {self.tenant_mode!r}")
        if self.notification_backend not in NOTIFICATION_BACKENDS:
            raise ValueError(
                f"invalid notification backend: {self.notification_backend!r}"
            )

    @staticmethod
    def load_from_config(path: Path = Path(".")) -> Config:
        """``setup.cfg`` 와 환경변수를 읽어 설정 객체를 만듭니다."""
        kwargs: dict[str, Any] = {}

        cfg = load_setupcfg(path)
        if cfg:
            kwargs["name"] = cfg.name
            kwargs["title"] = cfg.title or cfg.name

        return Config(
            db_url=_env("DATABASE_URL", "sqlite://"),
            tenant_mode=_env("TENANT_MODE", "multi"),  # type: ignore
            auth_jwt_secret=_env("AUTH_JWT_SECRET", Config.auth_jwt_secret),
            auth_jwt_expires_in=int(
                _env("AUTH_JWT_EXPIRES_IN", str(Config.auth_jwt_expires_in))
            ),
            bcrypt_rounds=int(_env("BCRYPT_ROUNDS", "12")),
            default_language=_env("DEFAULT_LANGUAGE", "en"),
            notification_backend=_env("NOTIFICATION_BACKEND", "none"),
            notification_webhook_url=os.environ.get("NOTIFICATION_WEBHOOK_URL"),
            redis=RedisConnectInfo(
                host=_env("REDIS_HOST", "localhost"),
                port=int(_env("REDIS_PORT", "6379")),
            ),
            api_host=_env("API_HOST", "127.0.0.1"),
            api_port=int(_env("API_PORT", "5000")),
            **kwargs,
        )

    @property
    def is_single_tenant(self) -> bool:
        return self.tenant_mode == "single"

    @property
    def is_multi_tenant(self) -> bool:
        return self.tenant_mode in ("multi", "multi-with-subdomain")

    def get_api_url(self) -> str:
        """Get API server's full url."""
        return f"http://{self.api_host}:{self.api_port}"

    def get_db_url(self) -> str:
        """SqlAlchemy 에서 사용 가능한 형식의 DB URL을 리턴합니다."""
        return self.db_url

    def get_db_connect_args(self) -> dict[str, Any]:
        """Get db connection arguments for SQLAlchemy's engine creation.

        SQLite 의 경우 FastAPI 스레드풀에서 같은 연결을 공유하므로
        ``check_same_thread`` 를 끕니다.
        """
        if self.db_url.startswith("sqlite"):
            return {"check_same_thread": False}
        return {}

    def get_db_poolclass(self) -> Optional[Type[Pool]]:
        """Get db poolclass arguemnt for SQLAlchemy's engine creation.

        인메모리 SQLite 는 연결마다 DB가 새로 만들어지므로 하나의 연결을 공유합니다.
        """
        if self.db_url in ("sqlite://", "sqlite:///:memory:"):
            return StaticPool
        return None


_config: Optional[Config] = None


def get_config() -> Config:
    """프로세스 전역 설정을 리턴합니다. 처음 호출될 때 환경변수에서 로드합니다."""
    global _config

    if not _config:
        _config = Config.load_from_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """프로세스 전역 설정을 교체합니다. 테스트에서 주로 사용합니다."""
    global _config
    _config = config
