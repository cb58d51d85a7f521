"""엔티티 CRUD 서비스.

모든 쓰기 작업은 하나의 UnitOfWork(``with self.uow:``) 안에서 실행되고, 블록을
벗어나기 전에 반드시 커밋 또는 롤백됩니다. 유니크 제약 조건 위반은 롤백 후
필드별로 번역된 :class:`ValidationError` 로 바뀌고, 그 외의 에러는 롤백 후 그대로
다시 발생합니다.
"""
from __future__ import annotations

from typing import Any, Generic, Iterable, Optional, Type, TypeVar

from visitorhub.context import RequestContext
from visitorhub.core import (
    AbstractUnitOfWork,
    Entity,
    FindQuery,
    UniqueConstraintError,
    ValidationError,
)
from visitorhub.domain.events import RecordCreated
from visitorhub.domain.models import to_dict
from visitorhub.event import MessageBus, messagebus
from visitorhub.i18n import i18n_exists
from visitorhub.logging import get_logger
from visitorhub.repo import jsonable

E = TypeVar("E", bound=Entity)

logger = get_logger("visitorhub.services")


class EntityService(Generic[E]):
    """한 종류의 엔티티에 대한 트랜잭션 CRUD 서비스."""

    entity_class: Type[E]
    relations: dict[str, Type[Any]] = {}
    """참조 필드 이름 -> 참조 대상 엔티티 클래스."""

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        ctx: RequestContext,
        bus: Optional[MessageBus] = None,
    ):
        self.uow = uow
        self.ctx = ctx
        self.bus = bus or messagebus

    def __repr__(self):
        return f"{self.__class__.__name__}[{self.ctx.tenant_id}]"

    @property
    def entity_name(self) -> str:
        meta = getattr(self.entity_class, "Meta", None)
        return getattr(meta, "entity_name", self.entity_class.__name__.lower())

    def create(self, data: dict[str, Any]) -> E:
        """레코드를 생성하고 커밋합니다.

        커밋된 뒤에 :class:`RecordCreated` 이벤트를 발행합니다.
        """
        with self.uow:
            try:
                data = self._filter_relations(self.prepare(data))
                record = self.uow[self.entity_class].create(data, self.ctx)
                self.uow.commit()
            except Exception as error:
                self.uow.rollback()
                self._handle_unique_field_error(error)
                raise

        self._publish_created(record)
        return record

    def update(self, id: str, data: dict[str, Any]) -> E:
        """레코드를 수정하고 커밋합니다.

        Raises:
            NotFoundError: ``id`` 에 해당하는 레코드가 없는 경우.
            ValidationError: 유니크 필드가 중복된 경우.
        """
        with self.uow:
            try:
                data = self._filter_relations(self.prepare(data))
                record = self.uow[self.entity_class].update(id, data, self.ctx)
                self.uow.commit()
            except Exception as error:
                self.uow.rollback()
                self._handle_unique_field_error(error)
                raise

        return record

    def destroy_all(self, ids: Iterable[str]) -> None:
        """주어진 id 들의 레코드를 하나의 트랜잭션으로 모두 삭제합니다.

        하나라도 실패하면 전체가 롤백되므로 일부만 삭제되는 일은 없습니다.
        """
        with self.uow:
            try:
                repo = self.uow[self.entity_class]
                for id in ids:
                    repo.destroy(id, self.ctx)

                self.uow.commit()
            except Exception:
                self.uow.rollback()
                raise

    def find_by_id(self, id: str) -> Optional[E]:
        with self.uow:
            return self.uow[self.entity_class].find_by_id(id, self.ctx)

    def find_all_autocomplete(
        self, search: Optional[str] = None, limit: Optional[int] = None
    ) -> list[dict[str, Any]]:
        with self.uow:
            return self.uow[self.entity_class].find_all_autocomplete(
                search, limit, self.ctx
            )

    def find_and_count_all(self, query: Optional[FindQuery] = None) -> tuple[list[E], int]:
        with self.uow:
            return self.uow[self.entity_class].find_and_count_all(
                query or FindQuery(), self.ctx
            )

    def import_(self, data: dict[str, Any], import_hash: Optional[str]) -> E:
        """일괄 import 로 레코드 하나를 생성합니다.

        같은 ``import_hash`` 로 이미 생성된 레코드가 있으면 실패합니다.
        """
        if not import_hash:
            raise ValidationError(self.ctx.language, "importer.errors.importHashRequired")

        if self._is_import_hash_existent(import_hash):
            raise ValidationError(self.ctx.language, "importer.errors.importHashExistent")

        return self.create({**data, "import_hash": import_hash})

    def prepare(self, data: dict[str, Any]) -> dict[str, Any]:
        """저장 전에 입력 값을 정리합니다. 하위 클래스에서 재정의합니다."""
        return dict(data)

    def _is_import_hash_existent(self, import_hash: str) -> bool:
        """import hash 가 이미 존재하는지 확인합니다.

        import 된 모든 항목은 고유한 해시를 가집니다.
        """
        with self.uow:
            count = self.uow[self.entity_class].count(
                {"import_hash": import_hash}, self.ctx
            )
        return count > 0

    def _filter_relations(self, data: dict[str, Any]) -> dict[str, Any]:
        """현재 테넌트에 없는 레코드를 가리키는 참조 id 는 ``None`` 으로 바꿉니다."""
        for name, related_class in self.relations.items():
            related_id = data.get(name)
            if related_id and not self.uow[related_class].find_by_id(related_id, self.ctx):
                data[name] = None
        return data

    def _handle_unique_field_error(self, error: Exception) -> None:
        if not isinstance(error, UniqueConstraintError):
            return

        language = self.ctx.language
        if error.field == "import_hash":
            raise ValidationError(language, "importer.errors.importHashExistent") from error

        message_code = f"entities.{self.entity_name}.errors.unique.{error.field}"
        if i18n_exists(language, message_code):
            raise ValidationError(language, message_code) from error

        raise ValidationError(language, "errors.validation.unique", error.field) from error

    def _publish_created(self, record: E) -> None:
        event = RecordCreated(
            entity_name=self.entity_name,
            record_id=record.id,
            tenant_id=self.ctx.tenant_id,
            values={k: jsonable(v) for k, v in to_dict(record, exclude=("id",)).items()},
        )
        try:
            self.bus.publish(event)
        except Exception:
            logger.exception("Failed to publish %r", event)


class ContactService(EntityService[E]):
    """이메일을 가진 레코드(방문자, 호스트)의 서비스.

    이메일은 소문자로 저장하고, 빈 값은 ``None`` 으로 바꿉니다. 테넌트 안에서
    이메일은 유니크하지만 ``None`` 은 여러 레코드가 가질 수 있습니다.
    """

    def prepare(self, data: dict[str, Any]) -> dict[str, Any]:
        data = super().prepare(data)
        if "email" in data:
            data["email"] = (data["email"] or "").strip().lower() or None
        return data
