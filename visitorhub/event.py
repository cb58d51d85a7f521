"""이벤트 드리븐 아키텍처를 위한 메세지 버스 관리 기능을 지원합니다.

주의:

    ``publish`` 는 이벤트를 백그라운드 스레드풀에 넘기고 바로 리턴합니다. 발행한 쪽은
    핸들러의 완료나 재시도를 기다리지 않습니다.
    이벤트 핸들러의 실패는 재시도 후 로그로만 남고, 이벤트를 발행한 쪽으로 전파되지
    않습니다. 이미 커밋된 트랜잭션의 결과는 핸들러 실패와 무관합니다.
"""
from __future__ import annotations

from collections import defaultdict
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from inspect import Parameter, signature
from typing import Any, Callable, Mapping, Optional, Type, TypeVar

from tenacity import RetryError, Retrying, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from visitorhub.core import Event, VisitorHubError
from visitorhub.logging import get_logger

E = TypeVar("E", bound=Event)
F = TypeVar("F", bound=Callable[..., Any])

EventHandlerMap = dict[Type[Event], list[Callable]]

EVENT_HANDLERS: EventHandlerMap = defaultdict(list)

logger = get_logger("visitorhub.event")

executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="visitorhub-event")
"""이벤트 핸들러를 실행하는 전역 스레드풀."""


class MessageBus:
    """이벤트를 등록된 핸들러들에게 전달합니다.

    핸들러의 파라메터 이름이 ``notifier`` 같은 의존성 이름과 같으면 버스에 주입된
    객체를 넘겨줍니다.
    """

    params_cache: dict[Callable, Mapping[str, Parameter]] = {}
    """핸들러 파라메터 캐시. 이름에 따른 Dependency Injection을 위해 사용합니다."""

    def __init__(
        self,
        handlers: EventHandlerMap,
        dependencies: Optional[dict[str, Any]] = None,
        attempts: int = 3,
        wait: Optional[wait_base] = None,
        executor: Optional[Executor] = None,
    ):
        self.handlers = handlers
        self.dependencies = dependencies if dependencies is not None else {}
        self.attempts = attempts
        self.wait = wait if wait is not None else wait_exponential(multiplier=0.5, max=5)
        self.executor = executor

    def register(self, etype: Type[Event], func: Callable):
        self.params_cache[func] = signature(func).parameters
        self.handlers[etype].append(func)

    def publish(self, event: Event) -> Future:
        """이벤트 처리를 백그라운드에서 시작하고 바로 리턴합니다."""
        self._check_event(event)
        return (self.executor or executor).submit(self.handle, event)

    def handle(self, event: Event) -> None:
        """이벤트를 처리합니다. 핸들러 실패는 호출자에게 전파되지 않습니다."""
        self._check_event(event)

        logger.debug("handle event: %r", event)
        for handler in self.handlers[type(event)]:
            try:
                retrying = Retrying(
                    stop=stop_after_attempt(self.attempts),
                    wait=self.wait,
                    reraise=False,
                )
                for attempt in retrying:
                    with attempt:
                        self.call_handler(event, handler)
            except RetryError as retry_failure:
                logger.error(
                    "Failed to handle event %r with %s after %s attempts, giving up: %r",
                    event,
                    getattr(handler, "__name__", handler),
                    retry_failure.last_attempt.attempt_number,
                    retry_failure.last_attempt.exception(),
                )

    @staticmethod
    def _check_event(event: Event) -> None:
        if not isinstance(event, Event):
            raise VisitorHubError(f"{event!r} was not an Event")

    def call_handler(self, event: Event, handler: Callable):
        """핸들러의 파라메터를 보고 적절한 의존성을 주입하여 핸들러를 호출합니다.

        예를 들어 ``def a_handler(event, notifier)`` 와 같은 핸들러가 있을 경우
        ``notifier`` 는 버스에 주입된 외부 의존성을 가리킵니다.
        """
        params = self.params_cache.get(handler)
        if params is None:
            params = self.params_cache[handler] = signature(handler).parameters

        names = list(params)[1:]
        missing = [name for name in names if self.dependencies.get(name) is None]
        if missing:
            logger.debug(
                "skip handler %r for %r, missing dependencies: %r",
                handler,
                event,
                missing,
            )
            return None

        return handler(event, **{name: self.dependencies[name] for name in names})


messagebus = MessageBus(EVENT_HANDLERS)
"""전역 메세지 버스."""


def on_event(etype: Type[E]) -> Callable[[F], F]:
    """이벤트 핸들러 데코레이터.

    함수를 이벤트 핸들러 레지스트리에 등록합니다.
    """

    def _wrapper(func: F) -> F:
        messagebus.register(etype, func)
        return func

    return _wrapper
