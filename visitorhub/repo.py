"""레포지터리 패턴 구현."""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, List, Optional, Type, TypeVar

from sqlalchemy import Boolean, String, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql.schema import Table, UniqueConstraint

from visitorhub.core import AbstractRepository, Entity, FindQuery, UniqueConstraintError
from visitorhub.domain.models import AuditLog
from visitorhub.orm import get_sessionmaker, table_of
from visitorhub.utils import utcnow

if TYPE_CHECKING:
    from visitorhub.context import RequestContext

E = TypeVar("E", bound=Entity)

SENSITIVE_FIELDS = {
    "password",
    "email_verification_token",
    "password_reset_token",
    "invitation_token",
}
"""감사 로그에 남기지 않는 필드."""

_UNIQUE_CONSTRAINT_NAME = [
    re.compile(r'unique constraint "(?P<name>[^"]+)"', re.I),  # PostgreSQL
    re.compile(r"Duplicate entry .* for key '(?:\w+\.)?(?P<name>[^']+)'"),  # MySQL
]
_UNIQUE_COLUMNS = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")  # SQLite


def unique_field_from(error: IntegrityError, table: Table) -> Optional[str]:
    """``IntegrityError`` 가 유니크 제약 조건 위반이면 위반된 필드 이름을 리턴합니다.

    복합 유니크 키(``tenant_id`` + 필드)의 경우 ``tenant_id`` 가 아닌 마지막 컬럼을
    필드로 봅니다. 유니크 제약 조건 위반이 아니면 ``None`` 을 리턴합니다.
    """
    columns: list[str] = []

    diag = getattr(error.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    message = str(error.orig)

    if not name:
        for pattern in _UNIQUE_CONSTRAINT_NAME:
            if m := pattern.search(message):
                name = m.group("name")
                break

    if name:
        constraint = next(
            (
                c
                for c in table.constraints
                if isinstance(c, UniqueConstraint) and c.name == name
            ),
            None,
        )
        if constraint is None:
            return None
        columns = [c.name for c in constraint.columns]
    elif m := _UNIQUE_COLUMNS.search(message):
        columns = [c.strip().split(".")[-1] for c in m.group("columns").split(",")]

    columns = [c for c in columns if c != "tenant_id"]
    return columns[-1] if columns else None


def jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


class SqlAlchemyRepository(AbstractRepository[E]):
    """SqlAlchemy ORM을 저장소로 하는 :class:`AbstractRepository` 구현입니다."""

    def __init__(
        self, entity_class: Type[E], session: Optional[Session] = None, audit=True
    ):
        """임의의 엔티티 E 를 받아 E 에 대한 Repository 를 초기화합니다."""
        super().__init__(entity_class)
        self.session: Session
        if not session:
            self.session = get_sessionmaker()()
        else:
            self.session = session
        self.audit = audit

    def __repr__(self) -> str:
        return f"SqlAlchemyRepository[{self.entity_class.__name__}]"

    @property
    def table(self) -> Table:
        return table_of(self.entity_class)

    def _add(self, item: E) -> None:
        self.session.add(item)

    def _get(self, id: str = "", **kwargs: Any) -> Optional[E]:
        if id:
            return self.session.get(self.entity_class, id)

        filter_by = {k: v for k, v in kwargs.items() if v is not None}
        if not filter_by:
            return None
        return self.session.scalars(
            select(self.entity_class).filter_by(**filter_by).limit(1)
        ).first()

    def _flush(self) -> None:
        self.session.info["flushed"] = True
        try:
            self.session.flush()
        except IntegrityError as error:
            field = unique_field_from(error, self.table)
            if field:
                raise UniqueConstraintError(self.entity_name, field) from error
            raise

    def _filter(self, criteria: dict[str, Any]) -> list[E]:
        stmt = select(self.entity_class).where(*self._equals(criteria))
        return list(self.session.scalars(stmt))

    def _count(self, criteria: dict[str, Any]) -> int:
        stmt = (
            select(func.count())
            .select_from(self.table)
            .where(*self._equals(criteria))
        )
        return self.session.scalar(stmt) or 0

    def _find_and_count_all(
        self, query: FindQuery, scope: dict[str, Any]
    ) -> tuple[list[E], int]:
        stmt = select(self.entity_class).where(*self._equals(scope))

        for name, value in query.filter.items():
            stmt = stmt.where(*self._filter_condition(name, value))

        count = self.session.scalar(
            select(func.count()).select_from(stmt.subquery())
        )

        order_name, descending = query.ordering
        if order_name in self.table.c:
            column = self.table.c[order_name]
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.limit:
            stmt = stmt.limit(query.limit)

        return list(self.session.scalars(stmt)), count or 0

    def _find_all_autocomplete(
        self, search: Optional[str], limit: Optional[int], scope: dict[str, Any]
    ) -> list[E]:
        stmt = select(self.entity_class).where(*self._equals(scope))

        if search:
            stmt = stmt.where(
                or_(
                    self.table.c.id == search,
                    *[
                        func.lower(self.table.c[name]).contains(search.lower())
                        for name in self.autocomplete_fields
                    ],
                )
            )

        if self.autocomplete_fields:
            stmt = stmt.order_by(self.table.c[self.autocomplete_fields[0]].asc())
        if limit:
            stmt = stmt.limit(limit)

        return list(self.session.scalars(stmt))

    def _equals(self, criteria: dict[str, Any]) -> list[Any]:
        return [self.table.c[k] == v for k, v in criteria.items()]

    def _filter_condition(self, name: str, value: Any) -> list[Any]:
        """목록 조회 필터 하나를 SQL 조건으로 변환합니다.

        - ``<field>_range``: ``(start, end)`` 범위 검색 (한쪽은 ``None`` 가능)
        - 문자열 컬럼(id 및 외래키 제외): 대소문자 구분 없는 부분 일치
        - 그 외: 정확히 일치
        """
        if value is None or value == "":
            return []

        if name.endswith("_range"):
            column = self.table.c.get(name[: -len("_range")])
            if column is None:
                return []
            start, end = value
            conditions = []
            if start is not None:
                conditions.append(column >= start)
            if end is not None:
                conditions.append(column <= end)
            return conditions

        column = self.table.c.get(name)
        if column is None:
            return []

        if isinstance(column.type, Boolean) and isinstance(value, str):
            return [column == (value.lower() in ("true", "1", "yes"))]

        if (
            isinstance(column.type, String)
            and name != "id"
            and not name.endswith("_id")
            and not column.foreign_keys
        ):
            return [func.lower(column).contains(str(value).lower())]

        return [column == value]

    def _log(
        self, action: str, record: E, values: dict[str, Any], ctx: RequestContext
    ) -> None:
        if not self.audit:
            return

        self.session.add(
            AuditLog(
                entity_name=self.entity_name,
                entity_id=record.id,
                tenant_id=getattr(record, "tenant_id", None) or ctx.tenant_id,
                action=action,
                values={
                    k: jsonable(v)
                    for k, v in values.items()
                    if k not in SENSITIVE_FIELDS
                },
                timestamp=utcnow(),
                created_by_id=ctx.user_id,
                created_by_email=ctx.current_user.email if ctx.current_user else None,
            )
        )

    def delete(self, item: E) -> None:
        self.session.delete(item)

    def all(self) -> List[E]:
        return list(self.session.scalars(select(self.entity_class)))
