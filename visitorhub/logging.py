"""로거 팩토리.

uvicorn 과 같은 형식(``INFO:     message``)으로 출력되는 로거를 만듭니다.
기본 로그 레벨은 ``LOG_LEVEL`` 환경변수로 바꿀 수 있습니다.
"""
import logging
import os
from typing import Optional, Union

from uvicorn.logging import DefaultFormatter

LOG_FORMAT = "%(levelprefix)s %(name)s: %(message)s"


def get_log_level() -> int:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level, logging.INFO)


def get_logger(name: str, log_level: Optional[Union[int, str]] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(log_level if log_level is not None else get_log_level())
        ch = logging.StreamHandler()
        ch.setFormatter(DefaultFormatter(fmt=LOG_FORMAT))
        logger.addHandler(ch)

    return logger
