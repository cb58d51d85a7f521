"""엔드포인트 모듈. 임포트될 때 전역 :data:`visitorhub.api.app` 에 등록됩니다."""
from . import auth, entities, tenant  # noqa
