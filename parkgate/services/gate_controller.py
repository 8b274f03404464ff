# parkgate/services/gate_controller.py
"""
Gate state machine on top of GateLink.

open()/close() send a command and wait for the matching hardware event
(`opened` / `closed`). While the gate reports `running`, or while a command
for the other direction still awaits its acknowledgement, new commands are
dropped with BUSY. A request for the direction the gate already rests in
settles at once without touching the hardware.

Every caller gets its own Future; waiters for one direction are queued and
all resolved, in arrival order, by the next terminal event. A waiter that
hears nothing within the ack timeout gets TIMEOUT and the running flag is
cleared so the next command is not blocked by a gate that went silent. A
caller that is cancelled first leaves the same way, so a lost command is
resent by whoever asks next.

State is only mutated on the event loop thread: the serial reader hands
frames over with call_soon_threadsafe.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional
from parkgate.config import settings
from parkgate.services.gate_link import GateFrame, GateLink
from parkgate.utils.logger import get_logger

logger = get_logger(__name__)

OPEN = "open"
CLOSE = "close"
DIRECTIONS = (OPEN, CLOSE)
_TERMINAL_VERBS = {"opened": OPEN, "closed": CLOSE}


@dataclass
class GateState:
    direction: str = CLOSE
    running: bool = False

    def to_dict(self) -> dict:
        return {"direction": self.direction, "running": self.running}


class GatePhase(str, Enum):
    IDLE = "idle"
    COMMAND_SENT = "command_sent"
    RUNNING = "running"
    SETTLED = "settled"


class GateStatus(str, Enum):
    SETTLED = "settled"
    BUSY = "busy"
    DEVICE_UNAVAILABLE = "device_unavailable"
    TIMEOUT = "timeout"


@dataclass
class GateReply:
    status: GateStatus
    state: GateState
    message: str

    def to_body(self) -> dict:
        return {"message": self.message, "status": self.status.value, **self.state.to_dict()}


class GateController:
    def __init__(self, link: GateLink, ack_timeout: float = None):
        self.link = link
        self.ack_timeout = ack_timeout if ack_timeout is not None else settings.GATE_ACK_TIMEOUT_SECONDS
        self._state = GateState()
        self.phase = GatePhase.IDLE
        self.phase_direction: Optional[str] = None
        self._pending: dict[str, deque] = {d: deque() for d in DIRECTIONS}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def state(self) -> GateState:
        return replace(self._state)

    def pending(self, direction: str) -> int:
        return len(self._pending[direction])

    def attach(self, loop: asyncio.AbstractEventLoop = None) -> bool:
        """Start the link; frames are marshalled onto `loop`."""
        self._loop = loop or asyncio.get_running_loop()
        return self.link.start(lambda frame: self._loop.call_soon_threadsafe(self.handle_frame, frame))

    # ── commands ─────────────────────────────────────────────────────────
    async def open(self) -> GateReply:
        return await self._request(OPEN)

    async def close(self) -> GateReply:
        return await self._request(CLOSE)

    async def _request(self, direction: str) -> GateReply:
        if not self.link.available:
            return GateReply(GateStatus.DEVICE_UNAVAILABLE, self.state, "Gate controller not detected")
        if self._state.running:
            logger.info(f"[Gate] {direction} rejected: gate still running {self._state.direction}")
            return GateReply(GateStatus.BUSY, self.state, "Gate is still running")
        if self.phase is GatePhase.COMMAND_SENT and self.phase_direction != direction:
            logger.info(f"[Gate] {direction} rejected: '{self.phase_direction}' command awaiting acknowledgement")
            return GateReply(GateStatus.BUSY, self.state, "Gate command in progress")
        if self._state.direction == direction and not self._pending[direction]:
            return GateReply(GateStatus.SETTLED, self.state, "Gate already open" if direction == OPEN else "Gate already closed")

        awaiting_ack = self.phase is GatePhase.COMMAND_SENT and self.phase_direction == direction
        if not awaiting_ack:
            if not self.link.send(direction):
                return GateReply(GateStatus.DEVICE_UNAVAILABLE, self.state, "Gate controller not detected")
            self.phase = GatePhase.COMMAND_SENT
            self.phase_direction = direction

        waiter = asyncio.get_running_loop().create_future()
        self._pending[direction].append(waiter)
        try:
            state = await asyncio.wait_for(waiter, timeout=self.ack_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⏱  [Gate] no '{direction}' acknowledgement after {self.ack_timeout:g}s")
            self._abandon(direction, waiter, gate_silent=True)
            return GateReply(GateStatus.TIMEOUT, self.state,
                             f"Gate did not acknowledge '{direction}' within {self.ack_timeout:g}s")
        except asyncio.CancelledError:
            logger.info(f"[Gate] '{direction}' caller went away before acknowledgement")
            self._abandon(direction, waiter)
            raise
        finally:
            if waiter in self._pending[direction]:
                self._pending[direction].remove(waiter)
        return GateReply(GateStatus.SETTLED, state, "Gate opened" if direction == OPEN else "Gate closed")

    def _abandon(self, direction: str, waiter: asyncio.Future, gate_silent: bool = False):
        """
        Drop an unanswered waiter. When the last one leaves, the next caller may
        resend. A cancelled caller says nothing about the hardware, so a gate
        that reported running stays running unless it also went silent.
        """
        if waiter in self._pending[direction]:
            self._pending[direction].remove(waiter)
        if self._pending[direction] or self.phase_direction != direction:
            return
        if self.phase is GatePhase.COMMAND_SENT or (gate_silent and self.phase is GatePhase.RUNNING):
            self._state.running = False
            self.phase = GatePhase.IDLE
            self.phase_direction = None

    # ── inbound events ───────────────────────────────────────────────────
    def handle_frame(self, frame: GateFrame):
        if frame.verb == "running":
            if frame.arg not in DIRECTIONS:
                logger.debug(f"[Gate] ignoring running frame with direction {frame.arg!r}")
                return
            self._state.running = True
            self._state.direction = frame.arg
            self.phase = GatePhase.RUNNING
            self.phase_direction = frame.arg
            return

        direction = _TERMINAL_VERBS.get(frame.verb)
        if direction is None:
            logger.debug(f"[Gate] ignoring frame {frame.verb!r}")
            return

        self._state.direction = direction
        self._state.running = False
        self.phase = GatePhase.SETTLED
        self.phase_direction = direction
        snapshot = self.state
        waiters = self._pending[direction]
        logger.info(f"[Gate] {frame.verb}: resolving {len(waiters)} waiter(s)")
        while waiters:
            waiter = waiters.popleft()
            if not waiter.done():
                waiter.set_result(snapshot)

    def status(self) -> dict:
        return {
            "available": self.link.available,
            "port": self.link.port_name,
            "phase": self.phase.value,
            **self._state.to_dict(),
            "pendingOpen": self.pending(OPEN),
            "pendingClose": self.pending(CLOSE),
        }

    def shutdown(self):
        for waiters in self._pending.values():
            while waiters:
                waiter = waiters.popleft()
                if not waiter.done():
                    waiter.cancel()
        self.link.stop()
