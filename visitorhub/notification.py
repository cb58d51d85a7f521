"""외부 연동 시스템으로의 알림 어댑터.

새 레코드가 생성되면 :class:`~visitorhub.domain.events.RecordCreated` 이벤트 핸들러가
설정된 노티파이어로 레코드 정보를 전송합니다. 전송은 최선 노력(best-effort) 방식이며
실패하더라도 원래 작업의 결과에는 영향을 주지 않습니다.
"""
from __future__ import annotations

import abc
import json
from typing import Any, Optional

import httpx
from redis import Redis

from visitorhub.config import Config, RedisConnectInfo
from visitorhub.logging import get_logger

logger = get_logger("visitorhub.notification")

CHANNEL = "RecordCreated"


class AbstractNotifier(abc.ABC):
    """알림 포트."""

    @abc.abstractmethod
    def notify(self, entity_name: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        return


class WebhookNotifier(AbstractNotifier):
    """HTTP POST 로 레코드를 전달합니다."""

    def __init__(self, url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.client = client or httpx.Client(timeout=timeout)

    def __repr__(self):
        return f"WebhookNotifier[{self.url}]"

    def notify(self, entity_name: str, payload: dict[str, Any]) -> None:
        r = self.client.post(self.url, json={"entity": entity_name, "data": payload})
        r.raise_for_status()
        logger.info("notified %s: %s %s", self.url, entity_name, payload.get("id"))

    def close(self) -> None:
        self.client.close()


class RedisNotifier(AbstractNotifier):
    """Redis 채널로 레코드를 발행합니다."""

    def __init__(self, info: RedisConnectInfo, channel: str = CHANNEL, redis: Optional[Redis] = None):
        self.redis = redis or Redis(host=info.host, port=info.port)
        self.info = info
        self.channel = channel

    def __repr__(self):
        return f"RedisNotifier[{self.info.url}/{self.channel}]"

    def notify(self, entity_name: str, payload: dict[str, Any]) -> None:
        data = {"entity": entity_name, "data": payload}
        logger.info("publish message to %s: %r", self.channel, data)
        self.redis.publish(self.channel, json.dumps(data, default=str))

    def close(self) -> None:
        self.redis.close()


def get_notifier(config: Config) -> Optional[AbstractNotifier]:
    """설정에 맞는 노티파이어를 만듭니다. 알림을 쓰지 않으면 ``None``."""
    if config.notification_backend == "webhook":
        if not config.notification_webhook_url:
            logger.warning("NOTIFICATION_WEBHOOK_URL is not set, notifications disabled")
            return None
        return WebhookNotifier(
            config.notification_webhook_url, timeout=config.notification_timeout
        )

    if config.notification_backend == "redis":
        return RedisNotifier(config.redis)

    return None
