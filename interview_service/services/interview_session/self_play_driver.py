"""
Self-Play Driver Module

Runs an interview without a human: the candidate side is generated by the
completion gateway and fed into the session state machine, one turn at a time,
with a pause between turns so the conversation can be watched as it unfolds.

Stopping is cooperative. A stop during the pause ends the loop before any further
candidate generation; a stop while a turn is in flight lets that candidate/reply
pair finish so the transcript never holds half an exchange.
Each pass re-reads a stored session first, so turns taken meanwhile through the
chat route are answered rather than skipped.

Dependencies:
- asyncio: For the background task and the cancellation event.
- loguru: For logging.
- pydantic: For the DriverSnapshot model.
- interview_service.services.interview_session.session_state_machine: For turns.
- interview_service.services.completion_gateway: For candidate turns.
"""

import asyncio
from enum import Enum
from typing import Optional
from fastapi import HTTPException
from loguru import logger
from pydantic import BaseModel
from interview_service.errors.exceptions import SessionAlreadyCompleted
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway
from interview_service.services.interview_session.session_state_machine import InterviewSessionMachine, MachineState

DEFAULT_DELAY_SECONDS = 1.5


class CancellationToken:
    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep for up to timeout seconds. Returns True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


class DriverStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"


class DriverSnapshot(BaseModel):
    """Point-in-time view of a driver, kept after the driver itself is released."""
    status: DriverStatus
    running: bool = False
    turns_played: int = 0
    is_complete: bool = False
    last_error: Optional[str] = None


class SelfPlayDriver:
    """
    Cancellable loop generating candidate turns for one session.

    Attributes:
        machine: The session being played.
        gateway: CompletionGateway used for candidate turns.
        delay_seconds: Pause between turns.
        max_turns: Optional cap on candidate turns for this run.
    """

    def __init__(
        self,
        machine: InterviewSessionMachine,
        gateway: CompletionGateway,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        max_turns: Optional[int] = None,
    ):
        self.machine = machine
        self.gateway = gateway
        self.delay_seconds = delay_seconds
        self.max_turns = max_turns
        self._token = CancellationToken()
        self._task: Optional[asyncio.Task] = None
        self._status = DriverStatus.IDLE
        self._turns_played = 0
        self._last_error: Optional[str] = None

    @property
    def status(self) -> DriverStatus:
        return self._status

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def turns_played(self) -> int:
        return self._turns_played

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def snapshot(self) -> DriverSnapshot:
        return DriverSnapshot(
            status=self._status,
            running=self.running,
            turns_played=self._turns_played,
            is_complete=self.machine.state == MachineState.COMPLETED,
            last_error=self._last_error,
        )

    def start(self) -> bool:
        """
        Schedule the loop in the background.

        Returns:
            bool: False if the driver was already running.

        Raises:
            SessionAlreadyCompleted: If the interview is over.
        """
        if self.machine.state == MachineState.COMPLETED:
            raise SessionAlreadyCompleted(self.machine.session_id)
        if self.running:
            return False
        self._token = CancellationToken()
        self._status = DriverStatus.RUNNING
        self._last_error = None
        self._task = asyncio.create_task(self.run())
        logger.info(f"Self-play started for session {self.machine.session_id}")
        return True

    def stop(self) -> bool:
        if not self.running:
            return False
        self._token.cancel()
        self._status = DriverStatus.STOPPED
        logger.info(f"Self-play stop requested for session {self.machine.session_id}")
        return True

    async def wait(self) -> DriverStatus:
        if self._task is not None:
            await self._task
        return self._status

    async def run(self) -> DriverStatus:
        """Play turns until the interview completes, a stop is requested or an error occurs."""
        self._status = DriverStatus.RUNNING
        played_this_run = 0
        try:
            if self.machine.state == MachineState.UNINITIALIZED:
                await self.machine.start()

            while not self._token.cancelled:
                # Pick up turns taken through the chat route since the last pass
                await self.machine.refresh()
                if self.machine.state == MachineState.COMPLETED:
                    break
                if self.max_turns is not None and played_this_run >= self.max_turns:
                    logger.info(f"Self-play reached its limit of {self.max_turns} turns")
                    self._token.cancel()
                    break

                candidate = await self.gateway.candidate_turn(self.machine.config, self.machine.messages)
                result = await self.machine.submit_turn(candidate.text)
                if not result.accepted:
                    break
                played_this_run += 1
                self._turns_played += 1
                logger.debug(f"Self-play turn {self._turns_played}: {candidate.text[:80]!r}")
                if result.is_complete:
                    break

                if await self._token.wait(self.delay_seconds):
                    break
        except HTTPException as e:
            self._status = DriverStatus.FAILED
            self._last_error = str(e.detail)
            logger.error(f"Self-play failed for session {self.machine.session_id}: {e.detail}")
        except Exception as e:
            self._status = DriverStatus.FAILED
            self._last_error = str(e)
            logger.exception(f"Self-play crashed for session {self.machine.session_id}")
        finally:
            if self._status != DriverStatus.FAILED:
                if self.machine.state == MachineState.COMPLETED:
                    self._status = DriverStatus.COMPLETED
                else:
                    self._status = DriverStatus.STOPPED
            logger.info(f"Self-play for session {self.machine.session_id} ended: {self._status.value}")
        return self._status
