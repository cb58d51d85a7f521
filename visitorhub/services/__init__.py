"""서비스 레이어.

엔티티 CRUD 서비스는 클래스로, 인증/테넌트 서비스는 모듈 함수로 제공됩니다.
"""
from visitorhub.services.cdc_questionnaire import CDCQuestionnaireService
from visitorhub.services.entity import ContactService, EntityService
from visitorhub.services.host import HostService
from visitorhub.services.meeting import MeetingService
from visitorhub.services.visitor import VisitorService

__all__ = [
    "EntityService",
    "ContactService",
    "VisitorService",
    "HostService",
    "MeetingService",
    "CDCQuestionnaireService",
]
