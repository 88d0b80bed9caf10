"""
debounce.py - 커밋 지연(settle) 타이머

새 원시 샘플이 들어올 때마다 지연 커밋을 다시 예약합니다.
같은 키에 대해 가장 최근에 예약된 커밋이 이전 예약을 대체하며,
대기 중인 예약은 키당 하나뿐입니다.

스케줄러는 call_later(delay, callback) -> handle(.cancel()) 형식이면
무엇이든 사용할 수 있습니다 (asyncio 이벤트 루프 포함).

Version: 1.0
Author: FurSys AI Team
"""

import heapq
import itertools
from typing import Any, Callable, Dict, Hashable, List, Optional
import logging

logger = logging.getLogger(__name__)


class ManualHandle:
    """ManualScheduler 예약 핸들"""

    def __init__(self, due: float, callback: Callable[[], Any]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    가상 시계 스케줄러

    advance()/advance_to()로 시간을 진행시키면 만기된 콜백을
    예약 순서대로 같은 스레드에서 실행합니다.
    테스트와 로그 재생(replay)에 사용합니다.
    """

    def __init__(self, start_time: float = 0.0):
        """
        Args:
            start_time: 시작 시각 (초)
        """
        self._now = start_time
        self._queue: List = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ManualHandle:
        """delay초 후 실행 예약"""
        handle = ManualHandle(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def advance_to(self, when: float) -> int:
        """
        when 시각까지 진행하고 만기된 콜백 실행

        Returns:
            실행된 콜백 수
        """
        fired = 0
        while self._queue and self._queue[0][0] <= when:
            due, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        self._now = max(self._now, when)
        return fired

    def advance(self, seconds: float) -> int:
        return self.advance_to(self._now + seconds)

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)


class Debouncer:
    """
    키별 단일 슬롯 지연 커밋

    Example:
        >>> debouncer = Debouncer(delay=0.3, scheduler=loop)
        >>> debouncer.schedule('orientation', lambda: commit(value))
    """

    def __init__(self, delay: float, scheduler: Optional[Any] = None):
        """
        Args:
            delay: 지연 시간 (초). 0 이하면 즉시 실행
            scheduler: call_later를 제공하는 스케줄러 (delay > 0 일 때 필수)
        """
        if delay > 0 and scheduler is None:
            raise ValueError("A scheduler is required when delay > 0")

        self.delay = delay
        self.scheduler = scheduler
        self._pending: Dict[Hashable, Any] = {}

    def schedule(self, key: Hashable, callback: Callable[[], Any]):
        """
        커밋 예약 (같은 키의 대기 중인 예약은 취소)

        Args:
            key: 예약 슬롯 키
            callback: 실행할 커밋 함수
        """
        self.cancel(key)

        if self.delay <= 0:
            callback()
            return

        def _fire():
            self._pending.pop(key, None)
            callback()

        self._pending[key] = self.scheduler.call_later(self.delay, _fire)

    def cancel(self, key: Hashable) -> bool:
        """대기 중인 예약 취소"""
        handle = self._pending.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self):
        """모든 예약 취소"""
        for key in list(self._pending):
            self.cancel(key)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)
