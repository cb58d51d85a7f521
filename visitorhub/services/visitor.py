from visitorhub.domain.models import Visitor
from visitorhub.services.entity import ContactService


class VisitorService(ContactService[Visitor]):
    entity_class = Visitor
