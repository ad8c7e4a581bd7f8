"""Singleflight 유틸리티

같은 키에 대한 동시 비동기 호출을 하나로 합칩니다.
캐시 미스가 동시에 발생해도 생성 작업은 한 번만 실행됩니다.
"""

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """진행 중인 작업을 키별로 공유하는 가드

    Example::

        flight: SingleFlight[dict] = SingleFlight()

        async def load():
            return await flight.do("homepage_42", lambda: build(42))
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """키에 대한 작업 실행 (이미 진행 중이면 그 결과를 기다림)

        Args:
            key: 작업 식별 키
            fn: 작업을 생성하는 코루틴 함수

        Returns:
            작업 결과 (예외도 모든 대기자에게 그대로 전파)
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(
                lambda done, key=key: self._forget(key, done)
            )

        # 한 호출자가 취소되어도 공유 작업은 계속 진행
        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Task[T]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
