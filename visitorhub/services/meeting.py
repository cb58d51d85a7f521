from visitorhub.domain.models import Host, Meeting, Visitor
from visitorhub.services.entity import EntityService


class MeetingService(EntityService[Meeting]):
    """방문 일정. 방문자와 호스트는 같은 테넌트의 레코드만 연결됩니다."""

    entity_class = Meeting
    relations = {"visitor_id": Visitor, "host_id": Host}
