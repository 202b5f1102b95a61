"""
사용자 단위 프로세스 내 락

같은 사용자에 대한 포인트 변경은 한 번에 하나만 실행되어야 한다.
DB 의 SELECT ... FOR UPDATE 가 프로세스 간 직렬화를 담당하고,
이 레지스트리는 같은 프로세스의 워커 스레드 간 직렬화를 담당한다.
"""

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, Iterator


class _UserLock:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.refs = 0


class UserLockRegistry:
    """사용자 ID 별 threading.Lock 레지스트리 (참조 카운트로 미사용 락 정리)"""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[int, _UserLock] = {}

    def _checkout(self, user_id: int) -> _UserLock:
        with self._guard:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = _UserLock()
                self._locks[user_id] = entry
            entry.refs += 1
            return entry

    def _checkin(self, user_id: int, entry: _UserLock) -> None:
        with self._guard:
            entry.refs -= 1
            if entry.refs == 0 and self._locks.get(user_id) is entry:
                del self._locks[user_id]

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        entry = self._checkout(user_id)
        try:
            entry.lock.acquire()
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(user_id, entry)

    @contextmanager
    def hold_many(self, user_ids: Iterable[int]) -> Iterator[None]:
        """여러 사용자 락을 ID 오름차순으로 획득 (교착 방지)"""
        with ExitStack() as stack:
            for user_id in sorted(set(user_ids)):
                stack.enter_context(self.hold(user_id))
            yield

    def active_count(self) -> int:
        with self._guard:
            return len(self._locks)
