"""
Keeps at most one self-play driver per persisted session and shuts them all down
with the application.

A driver is released as soon as its loop ends, together with the machine and the
transcript it holds. Only a small snapshot of how it ended is kept, for the most
recent sessions, so status requests can still report it.
"""

import asyncio
import os
from collections import OrderedDict
from typing import Dict, Optional
from dotenv import load_dotenv
from loguru import logger
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway
from interview_service.services.interview_session.self_play_driver import (
    DEFAULT_DELAY_SECONDS,
    DriverSnapshot,
    SelfPlayDriver,
)
from interview_service.services.interview_session.session_state_machine import InterviewSessionMachine

load_dotenv()

SHUTDOWN_GRACE_SECONDS = 5.0
FINISHED_SNAPSHOT_LIMIT = 256


def _max_turns_from_env() -> Optional[int]:
    value = int(os.getenv("SELF_PLAY_MAX_TURNS", "20"))
    return value if value > 0 else None


class SelfPlayRegistry:
    def __init__(self, delay_seconds: Optional[float] = None, max_turns: Optional[int] = None):
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None
            else float(os.getenv("SELF_PLAY_DELAY_SECONDS", str(DEFAULT_DELAY_SECONDS)))
        )
        self.max_turns = max_turns if max_turns is not None else _max_turns_from_env()
        self._drivers: Dict[str, SelfPlayDriver] = {}
        self._finished: "OrderedDict[str, DriverSnapshot]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._drivers)

    def get(self, session_id: str) -> Optional[SelfPlayDriver]:
        """Return the session's live driver, if any."""
        return self._drivers.get(session_id)

    def snapshot(self, session_id: str) -> Optional[DriverSnapshot]:
        """Status of the live driver, or of the last one that ran for the session."""
        driver = self._drivers.get(session_id)
        if driver is not None:
            return driver.snapshot()
        return self._finished.get(session_id)

    def start(self, session_id: str, machine: InterviewSessionMachine, gateway: CompletionGateway) -> SelfPlayDriver:
        """
        Start self-play for a session, reusing the running driver if there is one.

        Raises:
            SessionAlreadyCompleted: If the machine's interview is over.
        """
        driver = self._drivers.get(session_id)
        if driver is not None and driver.running:
            logger.info(f"Self-play already running for session {session_id}")
            return driver
        driver = SelfPlayDriver(machine, gateway, delay_seconds=self.delay_seconds, max_turns=self.max_turns)
        driver.start()
        self._drivers[session_id] = driver
        self._finished.pop(session_id, None)
        driver.task.add_done_callback(lambda _task: self._retire(session_id, driver))
        return driver

    def stop(self, session_id: str) -> Optional[DriverSnapshot]:
        driver = self._drivers.get(session_id)
        if driver is not None:
            driver.stop()
        return self.snapshot(session_id)

    async def stop_all(self) -> None:
        running = [driver for driver in self._drivers.values() if driver.running]
        if not running:
            return
        logger.info(f"Stopping {len(running)} self-play driver(s)")
        for driver in running:
            driver.stop()
        tasks = [driver.task for driver in running]
        _, pending = await asyncio.wait(tasks, timeout=SHUTDOWN_GRACE_SECONDS)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _retire(self, session_id: str, driver: SelfPlayDriver) -> None:
        if self._drivers.get(session_id) is not driver:
            return
        del self._drivers[session_id]
        self._finished[session_id] = driver.snapshot()
        while len(self._finished) > FINISHED_SNAPSHOT_LIMIT:
            self._finished.popitem(last=False)
        logger.debug(f"Released self-play driver for session {session_id} ({driver.status.value})")


self_play_registry = SelfPlayRegistry()
