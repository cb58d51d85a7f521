"""UnitOfWork 패턴 모듈.

SqlAlchemy를 이용한 기본 구현체를 제공합니다.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Sequence, Type

from visitorhub.core import AbstractRepository, AbstractUnitOfWork, EntityReposMap
from visitorhub.logging import get_logger
from visitorhub.orm import ENTITY_CLASSES, Session, SessionMaker, get_sessionmaker
from visitorhub.repo import SqlAlchemyRepository

RepoMakerFunc = Callable[[Session], AbstractRepository]
RepoMakerDict = dict[Type[Any], RepoMakerFunc]


logger = get_logger("visitorhub.uow")


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """``SqlAlchemy`` ORM을 이용한 UnitOfWork 패턴 구현입니다.

    ``with`` 블록에 들어갈 때마다 새 세션(트랜잭션)을 열고, 블록을 빠져나갈 때
    커밋되지 않은 변경은 롤백한 뒤 세션을 닫습니다.
    """

    # pylint: disable=super-init-not-called
    def __init__(
        self,
        entity_classes: Optional[Sequence[Type[Any]]] = None,
        get_session: Optional[SessionMaker] = None,
        repo_maker: Optional[RepoMakerDict] = None,
    ) -> None:
        """``SqlAlchemy`` 기반의 UoW를 초기화합니다."""
        super().__init__()
        self.entity_classes = entity_classes or ENTITY_CLASSES
        self.repos: EntityReposMap = {}
        self.repo_maker = repo_maker or {}

        if not get_session:
            self.get_session = get_sessionmaker()
        else:
            self.get_session = get_session

        self.state = None
        self.session: Optional[Session] = None

    def __repr__(self):
        return f"SqlAlchemyUnitOfWork[{self.state}]"

    def __exit__(self, *args: Any) -> None:
        """``with`` 블록을 빠져나갈 때 필요한 작업을 수행합니다.

        세션을 close합니다.
        """
        super().__exit__(*args)
        if self.session:
            self.session.close()
            self.session = None

    def _begin(self) -> None:
        """세션을 할당하고 레포지터리들을 초기화합니다."""
        self.session = self.get_session()
        self.repos = {}
        for entity_class in self.entity_classes:
            repo_maker = self.repo_maker.get(entity_class)
            self.repos[entity_class] = (
                repo_maker(self.session)
                if repo_maker
                else SqlAlchemyRepository(entity_class, self.session)
            )

    def _commit(self) -> None:
        """세션을 커밋합니다."""
        assert self.session is not None
        self.session.commit()

    def _rollback(self) -> None:
        """세션을 롤백합니다.

        조회만 한 트랜잭션이면 로드된 객체가 만료되지 않도록 세션에서 먼저
        분리합니다. 리턴된 레코드는 세션이 닫힌 뒤에도 읽을 수 있습니다.
        """
        if not self.session:
            return

        logger.debug("rollback: %r", self)
        if not self._has_writes():
            self.session.expunge_all()
        self.session.rollback()

    def _has_writes(self) -> bool:
        assert self.session is not None
        return bool(
            self.session.info.get("flushed")
            or self.session.new
            or self.session.dirty
            or self.session.deleted
        )
