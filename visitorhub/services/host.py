from visitorhub.domain.models import Host
from visitorhub.services.entity import ContactService


class HostService(ContactService[Host]):
    entity_class = Host
