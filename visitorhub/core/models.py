from __future__ import annotations

import abc
from contextlib import AbstractContextManager
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    List,
    Optional,
    Protocol,
    Sequence,
    Type,
    TypeVar,
)

from visitorhub.core.errors import NotFoundError, TransactionClosedError, VisitorHubError
from visitorhub.utils import utcnow

if TYPE_CHECKING:
    from visitorhub.context import RequestContext


class Entity(Protocol):
    """Entity 프로토콜 명세."""

    id: Any  # PK 컬럼으로 id 라는 필드를 제공해야 합니다.


E = TypeVar("E", bound=Entity)


class Event:
    """이벤트 객체.

    Events are broadcast by an actor to all interested listeners. When we
    publish RecordCreated, we don’t know who’s going to pick it up.
    We name events with past-tense verb phrases.

    Events capture facts about things that happened in the past. Since we don’t
    know who’s handling an event, senders should not care whether the receivers
    succeeded or failed.
    """


AUDIT_FIELDS = ("id", "tenant_id", "created_at", "updated_at", "created_by_id", "updated_by_id")
"""클라이언트 입력으로 덮어쓸 수 없는 필드 목록."""


@dataclass
class FindQuery:
    """목록 조회 조건.

    ``order_by`` 는 ``"<field>_ASC"`` 또는 ``"<field>_DESC"`` 형식입니다.
    """

    filter: dict[str, Any] = field(default_factory=dict)
    limit: Optional[int] = None
    offset: int = 0
    order_by: Optional[str] = None

    @property
    def ordering(self) -> tuple[str, bool]:
        """(필드 이름, 내림차순 여부) 를 리턴합니다."""
        if not self.order_by:
            return "created_at", True
        name, _, direction = self.order_by.rpartition("_")
        if not name or direction.upper() not in ("ASC", "DESC"):
            return self.order_by, False
        return name, direction.upper() == "DESC"


class AbstractRepository(Generic[E], abc.ABC):
    """Repository 패턴의 추상 인터페이스 입니다.

    서비스 레이어가 사용하는 영속성 계약(``create``, ``update``, ``destroy``,
    ``find_by_id``, ``count``, ``find_and_count_all``, ``find_all_autocomplete``)은
    이 클래스에서 구현되며, 하위 클래스는 ``_add``, ``_get``, ``_flush`` 같은
    저장소별 기본 연산만 구현하면 됩니다.
    """

    entity_class: Type[E]
    entity_name: str = ""
    autocomplete_fields: Sequence[str] = ()

    def __init__(self, entity_class: Optional[Type[E]] = None):
        if entity_class:
            self.entity_class = entity_class

        # 엔티티 클래스의 ``Meta`` 에서 i18n 키 이름과 자동 완성 필드를 읽습니다.
        meta = getattr(self.entity_class, "Meta", None)
        self.entity_name = (
            getattr(meta, "entity_name", "") or self.entity_class.__name__.lower()
        )
        self.autocomplete_fields = getattr(meta, "autocomplete_fields", ())

    @property
    def field_names(self) -> set[str]:
        return {f.name for f in fields(self.entity_class)}  # type: ignore

    @property
    def tenant_scoped(self) -> bool:
        """테넌트 별로 격리되는 엔티티인지 여부."""
        return "tenant_id" in self.field_names

    def add(self, item: E) -> None:
        """레포지터리에 :class:`E` 객체를 추가합니다."""
        self._add(item)

    def get(self, id: Any = "", **kwargs: Any) -> Optional[E]:
        """주어진 id 또는 필드 값(``get(email=...)``)에 해당하는 :class:`E` 객체를 조회합니다.

        못 찾을 경우 ``None`` 을 리턴합니다.
        """
        return self._get(id) if not kwargs else self._get(id="", **kwargs)

    def create(self, data: dict[str, Any], ctx: RequestContext) -> E:
        """새 레코드를 추가하고 저장소에 반영(flush)합니다.

        Raises:
            UniqueConstraintError: 유니크 필드가 중복된 경우.
        """
        now = utcnow()
        values = {**self._writable(data), **self._scope(ctx)}
        record = self.entity_class(**values)
        for name, value in (
            ("created_at", now),
            ("updated_at", now),
            ("created_by_id", ctx.user_id),
            ("updated_by_id", ctx.user_id),
        ):
            if name in self.field_names:
                setattr(record, name, value)

        self.add(record)
        self._flush()
        self._log("create", record, data, ctx)
        return record

    def update(self, id: str, data: dict[str, Any], ctx: RequestContext) -> E:
        """레코드를 수정합니다.

        Raises:
            NotFoundError: ``id`` 에 해당하는 레코드가 없는 경우.
            UniqueConstraintError: 유니크 필드가 중복된 경우.
        """
        record = self.find_by_id(id, ctx)
        if not record:
            raise NotFoundError(ctx.language)

        values = self._writable(data)
        for name, value in values.items():
            setattr(record, name, value)
        if "updated_at" in self.field_names:
            setattr(record, "updated_at", utcnow())
        if "updated_by_id" in self.field_names:
            setattr(record, "updated_by_id", ctx.user_id)

        self._flush()
        self._log("update", record, values, ctx)
        return record

    def destroy(self, id: str, ctx: RequestContext) -> None:
        """레코드를 삭제합니다.

        Raises:
            NotFoundError: ``id`` 에 해당하는 레코드가 없는 경우.
        """
        record = self.find_by_id(id, ctx)
        if not record:
            raise NotFoundError(ctx.language)

        self.delete(record)
        self._flush()
        self._log("delete", record, {}, ctx)

    def find_by_id(self, id: str, ctx: RequestContext) -> Optional[E]:
        """현재 테넌트 범위 안에서 ``id`` 에 해당하는 레코드를 찾습니다."""
        item = self._get(id)
        if not item:
            return None

        for name, value in self._scope(ctx).items():
            if getattr(item, name) != value:
                return None

        return item

    def count(self, filter: dict[str, Any], ctx: RequestContext) -> int:
        """조건(정확히 일치)에 맞는 레코드 수를 리턴합니다."""
        return self._count({**filter, **self._scope(ctx)})

    def find_and_count_all(
        self, query: FindQuery, ctx: RequestContext
    ) -> tuple[list[E], int]:
        """조건에 맞는 레코드 한 페이지와 전체 개수를 리턴합니다."""
        return self._find_and_count_all(query, self._scope(ctx))

    def find_all_autocomplete(
        self, search: Optional[str], limit: Optional[int], ctx: RequestContext
    ) -> list[dict[str, Any]]:
        """자동 완성용 ``{"id", "label"}`` 목록을 리턴합니다."""
        records = self._find_all_autocomplete(search, limit, self._scope(ctx))
        return [{"id": r.id, "label": self.label_of(r)} for r in records]

    def label_of(self, record: E) -> str:
        values = [getattr(record, name, None) for name in self.autocomplete_fields]
        return " ".join(str(v) for v in values if v) or str(record.id)

    def _writable(self, data: dict[str, Any]) -> dict[str, Any]:
        names = self.field_names
        return {
            k: v for k, v in data.items() if k in names and k not in AUDIT_FIELDS
        }

    def _scope(self, ctx: RequestContext) -> dict[str, Any]:
        if self.tenant_scoped:
            return {"tenant_id": ctx.tenant_id}
        return {}

    def _log(
        self, action: str, record: E, values: dict[str, Any], ctx: RequestContext
    ) -> None:
        """감사 로그를 남깁니다. 기본 구현은 아무것도 하지 않습니다."""
        return

    @abc.abstractmethod
    def _add(self, item: E) -> None:
        """레포지터리에 :class:`E` 객체를 추가합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def _get(self, id: str = "", **kwargs: Any) -> Optional[E]:
        """주어진 id 또는 필드 값에 해당하는 :class:`E` 객체를 조회합니다.

        해당하는 객체를 못 찾을 경우 ``None`` 을 리턴합니다.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def _flush(self) -> None:
        """변경 사항을 저장소에 반영합니다(커밋은 하지 않음).

        유니크 제약 조건 위반은 :class:`UniqueConstraintError` 로 분류합니다.
        """
        raise NotImplementedError

    def filter(self, **criteria: Any) -> list[E]:
        """필드 값이 정확히 일치하는 모든 객체를 조회합니다."""
        return self._filter(criteria)

    @abc.abstractmethod
    def _filter(self, criteria: dict[str, Any]) -> list[E]:
        raise NotImplementedError

    @abc.abstractmethod
    def _count(self, criteria: dict[str, Any]) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def _find_and_count_all(
        self, query: FindQuery, scope: dict[str, Any]
    ) -> tuple[list[E], int]:
        raise NotImplementedError

    @abc.abstractmethod
    def _find_all_autocomplete(
        self, search: Optional[str], limit: Optional[int], scope: dict[str, Any]
    ) -> list[E]:
        raise NotImplementedError

    @abc.abstractmethod
    def all(self) -> List[E]:
        """모든 엔티티 객체 리스트를 조회합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, item: E) -> None:
        """레포지터리에서 :class:`E` 객체를 삭제합니다."""
        raise NotImplementedError


EntityReposMap = dict[Type[Any], AbstractRepository]


class TransactionState(str, Enum):
    """UnitOfWork 의 트랜잭션 상태."""

    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled-back"


class AbstractUowProtocol(Protocol):
    repos: EntityReposMap
    entity_classes: Sequence[Type[Any]]


class AbstractUnitOfWork(
    AbstractUowProtocol, AbstractContextManager["AbstractUnitOfWork"]
):
    """UnitOfWork 패턴의 추상 인터페이스입니다.

    UnitOfWork(UoW)는 영구 저장소의 유일한 진입점이며, 로드된 객체의
    최신 상태를 계속 트래킹 합니다.

    ``with`` 블록 하나가 하나의 트랜잭션입니다. 상태는 ``open`` 에서 시작해
    ``committed`` 또는 ``rolled-back`` 중 하나로 끝나며, 끝난 뒤에는 커밋이나
    레포지터리 접근을 할 수 없습니다. 롤백은 몇 번을 호출해도 안전합니다.
    """

    repos: EntityReposMap
    state: Optional[TransactionState] = None

    def __enter__(self) -> AbstractUnitOfWork:
        """``with`` 블록에 진입했을때 새 트랜잭션을 시작합니다."""
        if self.state is TransactionState.OPEN:
            raise VisitorHubError("unit of work is already open")
        self._begin()
        self.state = TransactionState.OPEN
        return self

    def __exit__(self, *args: Any) -> None:
        """``with`` 블록에서 빠져나갈 때 실행되는 메소드입니다."""
        self.rollback()  # commit() 안되었을때 변경을 롤백합니다.
        # (이미 커밋 되었을 경우 rollback은 아무 효과도 없음)

    def __getitem__(self, key: Type[E]) -> AbstractRepository[E]:
        self._ensure_open()
        if key not in self.repos:
            raise VisitorHubError("repository not found for: %r" % key)
        return self.repos[key]

    @property
    def is_open(self) -> bool:
        return self.state is TransactionState.OPEN

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise TransactionClosedError()

    def commit(self) -> None:
        """트랜잭션을 커밋합니다.

        커밋이 실패하면 상태는 ``open`` 으로 남으므로 호출자가 롤백해야 합니다.
        """
        self._ensure_open()
        self._commit()
        self.state = TransactionState.COMMITTED

    def rollback(self) -> None:
        """트랜잭션을 롤백합니다. 열린 트랜잭션이 없으면 아무 일도 하지 않습니다."""
        if not self.is_open:
            return
        try:
            self._rollback()
        finally:
            self.state = TransactionState.ROLLED_BACK

    @abc.abstractmethod
    def _begin(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def _rollback(self) -> None:
        raise NotImplementedError
