from dataclasses import dataclass, field
from typing import Any, Optional

from visitorhub.core import Event


@dataclass
class RecordCreated(Event):
    """레코드 생성 트랜잭션이 커밋된 뒤에 발행되는 이벤트."""

    entity_name: str
    record_id: str
    tenant_id: Optional[str] = None
    values: dict[str, Any] = field(default_factory=dict)
