"""FastAPI 로 구현한 RESTful 서비스 앱."""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from visitorhub.config import Config, get_config, set_config
from visitorhub.core import LocalizedError, VisitorHubError
from visitorhub.event import messagebus
from visitorhub.i18n import i18n
from visitorhub.logging import get_logger
from visitorhub.notification import get_notifier

logger = get_logger("visitorhub.api")

# globals
app: FastAPI = FastAPI(title="VisitorHub")


def request_language(request: Request) -> str:
    """``Accept-Language`` 헤더의 첫 번째 언어 코드."""
    header = request.headers.get("accept-language", "")
    language = header.split(",")[0].split(";")[0].strip()
    return language or get_config().default_language


@app.exception_handler(VisitorHubError)
def handle_visitorhub_error(request: Request, exc: VisitorHubError):
    if not isinstance(exc, LocalizedError):
        # 번역되지 않은 내부 에러는 일반 메시지로 감춥니다.
        logger.error("unhandled error on %s: %r", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"message": i18n(request_language(request), "errors.defaultErrorMessage")},
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(Exception)
def handle_unknown_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": i18n(request_language(request), "errors.defaultErrorMessage")},
    )


def init_app(config: Optional[Config] = None) -> FastAPI:
    """FastAPI 앱을 초기화 합니다.

    :mod:`visitorhub.routes` 모듈 밑에 정의된 엔드포인트 라우팅 설정을 로드하고
    :meth:`visitorhub.orm.init_db` 를 호출하여 DB를 초기화 합니다. 이벤트 핸들러를
    등록하고 설정된 노티파이어를 메세지 버스에 주입합니다.
    """
    from visitorhub import handlers, routes  # noqa
    from visitorhub.orm import init_db

    if config:
        set_config(config)
    config = get_config()

    app.title = config.title
    init_db(config=config)

    messagebus.dependencies["notifier"] = get_notifier(config)

    return app
