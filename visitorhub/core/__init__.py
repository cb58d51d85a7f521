from .errors import (  # noqa
    AuthenticationError,
    ForbiddenError,
    InvalidCredentialsError,
    LocalizedError,
    NotFoundError,
    TransactionClosedError,
    UniqueConstraintError,
    ValidationError,
    VisitorHubError,
)
from .models import (  # noqa
    AbstractRepository,
    AbstractUnitOfWork,
    Entity,
    EntityReposMap,
    Event,
    FindQuery,
    TransactionState,
)
