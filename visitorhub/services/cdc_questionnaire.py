from visitorhub.domain.models import CDCQuestionnaire, Meeting, Visitor
from visitorhub.services.entity import EntityService


class CDCQuestionnaireService(EntityService[CDCQuestionnaire]):
    entity_class = CDCQuestionnaire
    relations = {"visitor_id": Visitor, "meeting_id": Meeting}
