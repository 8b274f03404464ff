# parkgate/services/gate_link.py
"""
Serial link to the gate actuator (Arduino-class board behind a USB-serial chip).

Protocol:
  outbound: ASCII command (open | close) followed by SUB (0x1A)
  inbound:  frames separated by SUB, each `<verb>[:<arg>]`
            running:open | running:close | opened | closed

The port is found by USB product id (and optional vendor id). When no port
matches, or it cannot be opened, the link stays disabled: send() returns
False and nothing else happens.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional

import serial
from serial.tools import list_ports

from parkgate.config import settings
from parkgate.utils.logger import get_logger

logger = get_logger(__name__)

FRAME_DELIMITER = b"\x1a"
COMMANDS = ("open", "close")


@dataclass
class GateFrame:
    verb: str
    arg: Optional[str] = None


def encode_command(command: str) -> bytes:
    if command not in COMMANDS:
        raise ValueError(f"Unknown gate command: {command!r}")
    return command.encode("ascii") + FRAME_DELIMITER


def parse_frame(text: str) -> Optional[GateFrame]:
    """`running:open` → GateFrame('running', 'open'). Blank frames → None."""
    text = text.strip()
    if not text:
        return None
    verb, sep, arg = text.partition(":")
    return GateFrame(verb=verb.strip(), arg=arg.strip() if sep else None)


class FrameDecoder:
    """Splits an inbound byte stream into frames; keeps partial frames between reads."""

    def __init__(self):
        self._buffer = b""

    def feed(self, data: bytes) -> list[GateFrame]:
        self._buffer += data
        *complete, self._buffer = self._buffer.split(FRAME_DELIMITER)
        frames = []
        for raw in complete:
            frame = parse_frame(raw.decode("ascii", errors="replace"))
            if frame is not None:
                frames.append(frame)
        return frames


def _id_matches(value: Optional[int], wanted: Optional[str]) -> bool:
    if not wanted:
        return True
    return value is not None and f"{value:04x}" == wanted.lower().removeprefix("0x").zfill(4)


def find_gate_port(product_id: str = None, vendor_id: str = None) -> Optional[str]:
    """Return the device path of the first serial port matching the USB ids."""
    product_id = product_id or settings.GATE_PRODUCT_ID
    vendor_id = vendor_id if vendor_id is not None else settings.GATE_VENDOR_ID
    for port in list_ports.comports():
        if _id_matches(port.pid, product_id) and _id_matches(port.vid, vendor_id):
            return port.device
    return None


class GateLink:
    def __init__(self, port=None, port_name: str = None, baud_rate: int = None,
                 product_id: str = None, vendor_id: str = None):
        # `port` may be any object with read/write/close (pre-opened serial port)
        self._port = port
        self.port_name = port_name
        self.baud_rate = baud_rate or settings.GATE_BAUD_RATE
        self.product_id = product_id
        self.vendor_id = vendor_id
        self._decoder = FrameDecoder()
        self._write_lock = threading.Lock()
        self._reader: Optional[threading.Thread] = None
        self._stop = threading.Event()

    @property
    def available(self) -> bool:
        return self._port is not None

    def start(self, on_frame: Callable[[GateFrame], None]) -> bool:
        """Discover and open the port, then start the reader thread."""
        if self._port is None:
            self.port_name = self.port_name or find_gate_port(self.product_id, self.vendor_id)
            if not self.port_name:
                logger.warning("🚧 Gate controller not detected, gate commands disabled")
                return False
            try:
                self._port = serial.Serial(self.port_name, self.baud_rate, timeout=0.5)
            except serial.SerialException as e:
                logger.warning(f"🚧 Cannot open gate port {self.port_name}: {e}, gate commands disabled")
                self._port = None
                return False

        self._stop.clear()
        self._reader = threading.Thread(target=self._read_loop, args=(on_frame,),
                                        name="gate-reader", daemon=True)
        self._reader.start()
        logger.info(f"✅ Gate link open on {self.port_name or 'injected port'} @ {self.baud_rate} baud")
        return True

    def _read_loop(self, on_frame: Callable[[GateFrame], None]):
        while not self._stop.is_set():
            port = self._port
            if port is None:
                return
            try:
                data = port.read(getattr(port, "in_waiting", 0) or 1)
            except serial.SerialException as e:
                logger.error(f"❌ Gate link read failed: {e}, gate commands disabled")
                self._port = None
                return
            if data:
                self.feed(data, on_frame)

    def feed(self, data: bytes, on_frame: Callable[[GateFrame], None]):
        """Decode raw bytes and deliver each complete frame."""
        for frame in self._decoder.feed(data):
            logger.debug(f"[Gate] ← {frame.verb}{':' + frame.arg if frame.arg else ''}")
            on_frame(frame)

    def send(self, command: str) -> bool:
        if self._port is None:
            logger.error(f"[Gate] '{command}' dropped: gate controller not detected")
            return False
        payload = encode_command(command)
        try:
            with self._write_lock:
                self._port.write(payload)
        except serial.SerialException as e:
            logger.error(f"[Gate] write of '{command}' failed: {e}")
            return False
        logger.info(f"[Gate] → {command}")
        return True

    def stop(self):
        self._stop.set()
        port, self._port = self._port, None
        if port is not None:
            try:
                port.close()
            except serial.SerialException as e:
                logger.warning(f"[Gate] error closing port: {e}")
        if self._reader and self._reader.is_alive() and self._reader is not threading.current_thread():
            self._reader.join(timeout=2)
