"""
Per-session lock registry.

HTTP turns are stateless (each request rebuilds its state machine), so the lock that
serialises turns on one session has to outlive the machine. Self-play and the chat
route fetch it from here by session id.

Entries are held weakly: a lock stays registered while some machine or request
holds it and disappears once nothing does, so the registry only ever tracks the
sessions currently in use.
"""

import asyncio
import weakref
from typing import Optional


class SessionLocks:
    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def for_session(self, session_id: Optional[str]) -> asyncio.Lock:
        """Return the shared lock for a session, or a private one for anonymous sessions."""
        if session_id is None:
            return asyncio.Lock()
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


session_locks = SessionLocks()
