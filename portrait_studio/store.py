"""
In-memory session storage
Sessions live only as long as the process; nothing is written to disk.
Idle sessions expire, and the least recently touched ones are dropped
once the store is full.
"""

import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Tuple, TypeVar

from .config import DEFAULT_MAX_SESSIONS, DEFAULT_SESSION_IDLE_SECONDS
from .state import StudioSession

T = TypeVar('T')


class SessionStore:
    """Maps a browser session id to its StudioSession"""

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS,
                 idle_seconds: int = DEFAULT_SESSION_IDLE_SECONDS,
                 clock: Callable[[], float] = time.time):
        self.max_sessions = max(1, max_sessions)
        self.idle_seconds = max(0, idle_seconds)
        self._clock = clock
        # sid -> (session, last touched), oldest first
        self._sessions: "OrderedDict[str, Tuple[StudioSession, float]]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def _cleanup(self, now: float) -> None:
        # Drop sessions idle longer than the window; 0 keeps them
        cutoff_time = now - self.idle_seconds
        while self.idle_seconds and self._sessions:
            sid, (_, touched) = next(iter(self._sessions.items()))
            if touched >= cutoff_time:
                break
            del self._sessions[sid]
            print(f"🧹 Session {sid[:8]} expired after {self.idle_seconds}s idle")

        # Then the least recently used ones beyond the limit
        while len(self._sessions) > self.max_sessions:
            sid, _ = self._sessions.popitem(last=False)
            print(f"🧹 Session {sid[:8]} dropped, store limit is {self.max_sessions}")

    def get(self, sid: str) -> StudioSession:
        """Current session, or a fresh one; reading never creates an entry"""
        with self._lock:
            self._cleanup(self._clock())
            entry = self._sessions.get(sid)
            return entry[0] if entry else StudioSession()

    def update(self, sid: str,
               fn: Callable[[StudioSession], Tuple[StudioSession, T]]) -> Tuple[StudioSession, T]:
        """
        Apply a transition atomically

        Args:
            sid: Session id
            fn: Takes the current session, returns (new session, extra value)

        Returns:
            tuple: (new session, extra value)
        """
        with self._lock:
            now = self._clock()
            entry = self._sessions.get(sid)
            current = entry[0] if entry else StudioSession()
            new_session, extra = fn(current)
            self._sessions[sid] = (new_session, now)
            self._sessions.move_to_end(sid)
            self._cleanup(now)
            return new_session, extra

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
