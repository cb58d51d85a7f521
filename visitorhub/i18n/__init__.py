"""다국어 메시지 카탈로그 모듈.

서비스 레이어는 사용자에게 보여질 문구를 직접 만들지 않고 메시지 키만 전달합니다.
템플릿 문자열의 ``{0}``, ``{1}`` 같은 위치 기반 플레이스홀더는 인자로 치환됩니다.

Example: ::

    >>> i18n("en", "tenant.errors.invalidPlan", "gold")
    'gold is not a valid plan.'
"""
from __future__ import annotations

import re
from typing import Any, Optional

from visitorhub.i18n.en import en

DEFAULT_LANGUAGE = "en"

CATALOGS: dict[str, dict[str, Any]] = {
    "en": en,
}

_PLACEHOLDER = re.compile(r"\{(\d+)\}")


def _lookup(catalog: dict[str, Any], key: str) -> Optional[str]:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def get_catalog(language: Optional[str]) -> dict[str, Any]:
    """언어 코드에 해당하는 카탈로그를 리턴합니다.

    ``pt-BR`` 처럼 지역 코드가 붙은 경우 앞의 언어 코드로도 찾아보고, 없으면 기본
    언어(영문) 카탈로그를 리턴합니다.
    """
    if language:
        if language in CATALOGS:
            return CATALOGS[language]
        short = language.split("-")[0].lower()
        if short in CATALOGS:
            return CATALOGS[short]
    return CATALOGS[DEFAULT_LANGUAGE]


def i18n_exists(language: Optional[str], key: str) -> bool:
    """키에 해당하는 메시지가 카탈로그에 있는지 확인합니다."""
    return _lookup(get_catalog(language), key) is not None


def i18n(language: Optional[str], key: str, *args: Any) -> str:
    """메시지 키를 번역된 문자열로 변환합니다.

    요청한 언어에 키가 없으면 기본 언어에서 찾고, 그래도 없으면 키 자체를 리턴합니다.
    """
    message = _lookup(get_catalog(language), key)
    if message is None:
        message = _lookup(CATALOGS[DEFAULT_LANGUAGE], key)
    if message is None:
        return key

    def _replace(match: re.Match) -> str:
        index = int(match.group(1))
        return str(args[index]) if index < len(args) else match.group(0)

    return _PLACEHOLDER.sub(_replace, message)
