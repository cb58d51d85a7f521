from visitorhub.domain.events import RecordCreated
from visitorhub.event import on_event
from visitorhub.notification import AbstractNotifier


@on_event(RecordCreated)
def notify_record_created(event: RecordCreated, notifier: AbstractNotifier):
    """생성된 레코드를 외부 연동 시스템에 알립니다."""
    notifier.notify(
        event.entity_name,
        {"id": event.record_id, "tenant_id": event.tenant_id, **event.values},
    )
