# pylint: disable=redefined-outer-name, protected-access
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

from typing import Generator

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from visitorhub.config import Config, set_config
from visitorhub.context import RequestContext
from visitorhub.domain.events import RecordCreated
from visitorhub.domain.models import Roles
from visitorhub.handlers.notification import notify_record_created
from visitorhub.orm import (
    SessionMaker,
    clear_mappers,
    init_engine,
    make_sessionmaker,
    set_default_sessionmaker,
    start_mappers,
)
from visitorhub.test.unit import FakeMessageBus, FakeNotifier, FakeUnitOfWork
from visitorhub.uow import SqlAlchemyUnitOfWork
from tests import make_context


def memory_sessionmaker() -> SessionMaker:
    """매번 새로 만들어지는 인메모리 SQLite DB 의 세션 팩토리."""
    metadata = start_mappers(use_exist=False)
    engine = init_engine(
        metadata,
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return make_sessionmaker(engine)


@pytest.fixture
def config() -> Generator[Config, None, None]:
    """테스트용 설정. 해시 비용을 낮춰 테스트 속도를 높입니다."""
    config = Config(bcrypt_rounds=4, auth_jwt_secret="test-secret")
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def single_tenant_config(config: Config) -> Config:
    config.tenant_mode = "single"
    return config


@pytest.fixture
def get_session(config: Config) -> Generator[SessionMaker, None, None]:
    """:class:`.Session` 팩토리 픽스쳐 입니다.

    호출시마다 새 인메모리 DB를 만들고 전역 기본 세션 팩토리로 설정합니다.
    """
    get_session = memory_sessionmaker()
    set_default_sessionmaker(get_session)
    yield get_session
    set_default_sessionmaker(None)
    clear_mappers()


@pytest.fixture
def session(get_session: SessionMaker) -> Generator[Session, None, None]:
    """테스트에 사용될 새로운 :class:`.Session` 픽스처를 리턴합니다."""
    session = get_session()
    yield session
    session.close()


@pytest.fixture
def uow(get_session: SessionMaker) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(get_session=get_session)


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def bus(notifier: FakeNotifier) -> FakeMessageBus:
    """:class:`RecordCreated` 를 노티파이어로 전달하는 메세지 버스."""
    return FakeMessageBus(
        {RecordCreated: [notify_record_created]}, {"notifier": notifier}
    )


@pytest.fixture
def ctx() -> RequestContext:
    """관리자 권한을 가진 요청 컨텍스트."""
    return make_context([Roles.ADMIN])


@pytest.fixture
def other_ctx() -> RequestContext:
    """다른 테넌트의 관리자 컨텍스트."""
    return make_context([Roles.ADMIN])
