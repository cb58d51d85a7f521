"""ORM 어댑터 모듈.

도메인 모델(:mod:`visitorhub.domain.models`)은 ORM 을 모르는 dataclass 이며,
여기서 테이블을 정의하고 imperative 매핑으로 연결합니다.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Type, Union, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import clear_mappers as _clear_mappers
from sqlalchemy.orm import registry, sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import Pool

from visitorhub.config import Config, get_config
from visitorhub.domain.models import (
    AuditLog,
    CDCQuestionnaire,
    Host,
    Meeting,
    Tenant,
    TenantUser,
    User,
    Visitor,
)
from visitorhub.logging import get_logger

SessionMaker = Callable[[], Session]
"""Session 팩토리 타입."""

ENTITY_CLASSES: list[Type[Any]] = [
    Tenant,
    User,
    TenantUser,
    AuditLog,
    Visitor,
    Host,
    Meeting,
    CDCQuestionnaire,
]
"""매핑되는 모든 도메인 클래스."""

metadata: Optional[MetaData] = None
mapper_registry: Optional[registry] = None

_get_session: Optional[SessionMaker] = None  # pylint: disable=invalid-name

logger = get_logger("visitorhub.orm")


def _record_columns() -> list[Column]:
    return [
        Column("id", String(36), primary_key=True),
        Column("created_at", DateTime(timezone=True)),
        Column("updated_at", DateTime(timezone=True)),
        Column("created_by_id", String(36)),
        Column("updated_by_id", String(36)),
    ]


def _tenant_columns(name: str) -> list[Any]:
    return [
        Column("tenant_id", ForeignKey("tenant.id"), nullable=False, index=True),
        Column("import_hash", String(255)),
        UniqueConstraint("tenant_id", "import_hash", name=f"uq_{name}_import_hash"),
    ]


def init_mappers(metadata: MetaData) -> MetaData:
    """도메인 객체들을 SqlAlchemy ORM 매퍼에 등록합니다."""
    global mapper_registry  # pylint: disable=global-statement,invalid-name

    tenant = Table(
        "tenant",
        metadata,
        *_record_columns(),
        Column("name", String(255), nullable=False),
        Column("url", String(50)),
        Column("plan", String(20), nullable=False, server_default="free"),
        Column("plan_status", String(20), nullable=False, server_default="active"),
        Column("plan_user_id", String(36)),
        UniqueConstraint("url", name="uq_tenant_url"),
    )

    user = Table(
        "user",
        metadata,
        *_record_columns(),
        Column("email", String(255), nullable=False),
        Column("first_name", String(80)),
        Column("last_name", String(175)),
        Column("full_name", String(255)),
        Column("phone_number", String(24)),
        Column("password", String(255)),
        Column("email_verified", Boolean, nullable=False, default=False),
        Column("email_verification_token", String(255)),
        Column("email_verification_token_expires_at", DateTime(timezone=True)),
        Column("password_reset_token", String(255)),
        Column("password_reset_token_expires_at", DateTime(timezone=True)),
        UniqueConstraint("email", name="uq_user_email"),
    )

    tenant_user = Table(
        "tenant_user",
        metadata,
        *_record_columns(),
        Column("tenant_id", ForeignKey("tenant.id"), nullable=False, index=True),
        Column("user_id", ForeignKey("user.id"), nullable=False, index=True),
        Column("roles", JSON, nullable=False),
        Column("status", String(20), nullable=False),
        Column("invitation_token", String(255)),
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_user_user_id"),
    )

    audit_log = Table(
        "audit_log",
        metadata,
        Column("id", String(36), primary_key=True),
        Column("entity_name", String(255), nullable=False),
        Column("entity_id", String(36), nullable=False),
        Column("tenant_id", String(36), index=True),
        Column("action", String(32), nullable=False),
        Column("values", JSON, nullable=False),
        Column("timestamp", DateTime(timezone=True), nullable=False),
        Column("created_by_id", String(36)),
        Column("created_by_email", String(255)),
    )

    visitor = Table(
        "visitor",
        metadata,
        *_record_columns(),
        *_tenant_columns("visitor"),
        Column("first_name", String(255), nullable=False),
        Column("last_name", String(255)),
        Column("middle_name", String(255)),
        Column("email", String(255)),
        Column("phone", String(24)),
        Column("picture", Text),
        UniqueConstraint("tenant_id", "email", name="uq_visitor_email"),
    )

    host = Table(
        "host",
        metadata,
        *_record_columns(),
        *_tenant_columns("host"),
        Column("first_name", String(255), nullable=False),
        Column("last_name", String(255)),
        Column("middle_name", String(255)),
        Column("email", String(255)),
        Column("phone", String(24)),
        UniqueConstraint("tenant_id", "email", name="uq_host_email"),
    )

    meeting = Table(
        "meeting",
        metadata,
        *_record_columns(),
        *_tenant_columns("meeting"),
        Column("purpose_of_visit", Text),
        Column("time_of_visit", DateTime(timezone=True)),
        Column("visitor_id", ForeignKey("visitor.id")),
        Column("host_id", ForeignKey("host.id")),
    )

    cdc_questionnaire = Table(
        "cdc_questionnaire",
        metadata,
        *_record_columns(),
        *_tenant_columns("cdc_questionnaire"),
        *[
            Column(name, Boolean, nullable=False, default=False)
            for name in (
                "fever_or_chills",
                "cough",
                "shortbreath",
                "fatigue",
                "muscle_aches",
                "headache",
                "loss_of_taste",
                "sore_throat",
                "congestion",
                "nausea",
                "diarrhea",
            )
        ],
        Column("visitor_id", ForeignKey("visitor.id")),
        Column("meeting_id", ForeignKey("meeting.id")),
    )

    mapper_registry = registry(metadata=metadata)
    mapper_registry.map_imperatively(Tenant, tenant)
    mapper_registry.map_imperatively(User, user)
    mapper_registry.map_imperatively(TenantUser, tenant_user)
    mapper_registry.map_imperatively(AuditLog, audit_log)
    mapper_registry.map_imperatively(Visitor, visitor)
    mapper_registry.map_imperatively(Host, host)
    mapper_registry.map_imperatively(Meeting, meeting)
    mapper_registry.map_imperatively(CDCQuestionnaire, cdc_questionnaire)

    return metadata


def start_mappers(use_exist: bool = True) -> MetaData:
    """도메인 객체들을 SqlAlchemy ORM 매퍼에 등록합니다.

    이미 매핑되어 있고 ``use_exist`` 가 참이면 기존 메타데이터를 그대로 씁니다.
    """
    global metadata  # pylint: disable=global-statement,invalid-name
    if use_exist and metadata:
        return metadata

    clear_mappers()
    metadata = init_mappers(MetaData())
    return metadata


def clear_mappers() -> None:
    """ORM 매핑을 초기화 합니다."""
    global metadata, mapper_registry  # pylint: disable=global-statement,invalid-name
    _clear_mappers()
    metadata = None
    mapper_registry = None


def init_engine(
    meta: MetaData,
    url: str,
    connect_args: Optional[dict[str, Any]] = None,
    poolclass: Optional[Type[Pool]] = None,
    show_log: bool = False,
    isolation_level: Optional[str] = None,
    drop_all: bool = False,
) -> Engine:
    """ORM Engine을 초기화 하고 테이블을 생성합니다."""
    kwargs: dict[str, Any] = {}
    if poolclass:
        kwargs["poolclass"] = poolclass
    if isolation_level:
        kwargs["isolation_level"] = isolation_level

    engine = create_engine(
        url,
        connect_args=connect_args or {},
        echo=show_log,
        **kwargs,
    )

    if drop_all:
        meta.drop_all(engine)

    meta.create_all(engine)

    logger.debug("database initialized: %s (%d tables)", url, len(meta.tables))
    return engine


def make_sessionmaker(engine: Engine) -> SessionMaker:
    """커밋 후에도 로드된 속성을 읽을 수 있는 세션 팩토리를 만듭니다.

    서비스는 트랜잭션이 끝난 뒤 레코드를 리턴하므로 ``expire_on_commit`` 을 끕니다.
    """
    return cast(SessionMaker, sessionmaker(engine, expire_on_commit=False))


def init_db(
    db_url: Optional[str] = None,
    drop_all: bool = False,
    show_log: bool = False,
    config: Optional[Config] = None,
) -> SessionMaker:
    """DB 엔진을 초기화 합니다."""
    global _get_session  # pylint: disable=global-statement,invalid-name

    if _get_session and not drop_all:
        return _get_session

    config = config or get_config()
    url = db_url or config.get_db_url()
    engine = init_engine(
        start_mappers(),
        url,
        connect_args=config.get_db_connect_args(),
        poolclass=config.get_db_poolclass(),
        drop_all=drop_all,
        show_log=show_log,
    )
    _get_session = make_sessionmaker(engine)
    return _get_session


def get_sessionmaker() -> SessionMaker:
    """기본설정으로 SqlAlchemy Session 팩토리를 리턴합니다."""
    return _get_session or init_db()


def set_default_sessionmaker(get_session: Optional[SessionMaker]) -> None:
    """기본 Session 팩토리를 교체합니다. 테스트에서 인메모리 DB를 쓸 때 사용합니다."""
    global _get_session  # pylint: disable=global-statement,invalid-name
    _get_session = get_session


def table_of(entity_class: Union[Type[Any], Any]) -> Table:
    """엔티티 클래스에 매핑된 테이블을 리턴합니다."""
    from sqlalchemy import inspect

    return cast(Table, inspect(entity_class).local_table)
