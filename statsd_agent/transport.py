import asyncio
import logging
from typing import Iterable, List, Optional, Union

from .config import DEBUG, MAX_DATAGRAM_SIZE, STATSD_HOST, STATSD_PORT

logger = logging.getLogger(__name__)


class _StatsdProtocol(asyncio.DatagramProtocol):
    def error_received(self, exc):
        logger.warning(f"statsd send failed: {exc}")


def split_datagrams(lines: List[str], max_size: int) -> List[str]:
    """Join lines with newlines, starting a new datagram before max_size bytes is exceeded."""
    datagrams = []
    current = []
    size = 0
    for line in lines:
        length = len(line.encode("utf-8"))
        # +1 for the joining newline
        if current and size + 1 + length > max_size:
            datagrams.append("\n".join(current))
            current, size = [], 0
        size += length if not current else length + 1
        current.append(line)
    if current:
        datagrams.append("\n".join(current))
    return datagrams


class UdpTransport:
    """Fire-and-forget UDP sender. Nothing is acknowledged, queued or retried."""

    def __init__(
        self,
        host: str = STATSD_HOST,
        port: int = STATSD_PORT,
        max_size: int = MAX_DATAGRAM_SIZE,
        debug: bool = DEBUG,
    ):
        self.host = host
        self.port = port
        self.max_size = max_size
        self.debug = debug
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._connecting: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    async def connect(self):
        """Open the socket. Failures are logged and retried on a later send."""
        if self.debug:
            return
        loop = asyncio.get_running_loop()
        try:
            self._transport, _ = await loop.create_datagram_endpoint(
                _StatsdProtocol, remote_addr=(self.host, self.port)
            )
        except OSError as e:
            self._transport = None
            logger.warning(f"cannot reach statsd at {self.host}:{self.port}: {e}")
            return
        logger.info(f"sending metrics to {self.host}:{self.port}")

    def _reconnect(self):
        if self._connecting is not None and not self._connecting.done():
            return
        try:
            self._connecting = asyncio.get_running_loop().create_task(self.connect())
        except RuntimeError:
            # no running loop, nothing to reconnect on
            self._connecting = None

    def send(self, message: Union[str, Iterable[str]]):
        lines = [message] if isinstance(message, str) else list(message)
        if not lines:
            return

        for datagram in split_datagrams(lines, self.max_size):
            if self.debug:
                logger.info(datagram)
                continue
            if not self.connected:
                logger.warning("statsd transport is not connected, dropping metrics")
                self._reconnect()
                return
            try:
                self._transport.sendto(datagram.encode("utf-8"))
            except OSError as e:
                logger.warning(f"statsd send failed: {e}")

    def close(self):
        if self._connecting is not None:
            self._connecting.cancel()
            self._connecting = None
        if self._transport is not None:
            self._transport.close()
            self._transport = None
