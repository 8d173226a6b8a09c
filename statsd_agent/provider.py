"""
psutil-backed telemetry queries.

psutil calls block, so every query runs in a worker thread and the event loop
stays free to fire timers. Rates (network bytes/sec, disk operations/sec) are
computed against the previous reading of the same provider instance; the first
query of a rate has nothing to compare with and returns None.
"""

import asyncio
import ipaddress
import socket
import sys
import time
from typing import Dict, List, NamedTuple, Optional, Tuple

import psutil

from .config import LATENCY_HOST, LATENCY_PORT, LATENCY_TIMEOUT


class Memory(NamedTuple):
    total: int
    free: int
    used: int
    active: Optional[int]
    swaptotal: int
    swapfree: int
    swapused: int


class NetworkStats(NamedTuple):
    iface: str
    rx_sec: float
    tx_sec: float


class FsSize(NamedTuple):
    fs: str
    type: str
    mount: str
    use: float


class Battery(NamedTuple):
    hasbattery: bool
    percent: float


class DisksIO(NamedTuple):
    r_io_sec: float
    w_io_sec: float


def _is_loopback(address: str) -> bool:
    try:
        # drop the scope of link-local ipv6 addresses ("fe80::1%eth0")
        return ipaddress.ip_address(address.split("%", 1)[0]).is_loopback
    except ValueError:
        return False


class SystemProvider:
    def __init__(
        self,
        latency_host: str = LATENCY_HOST,
        latency_port: int = LATENCY_PORT,
        latency_timeout: float = LATENCY_TIMEOUT,
        clock=time.monotonic,
    ):
        self.latency_host = latency_host
        self.latency_port = latency_port
        self.latency_timeout = latency_timeout
        self._clock = clock
        self._net_prev: Dict[str, Tuple[float, int, int]] = {}
        self._disk_prev: Optional[Tuple[float, int, int]] = None

    # ================= CPU / MEMORY =================
    async def current_load(self) -> List[float]:
        return await asyncio.to_thread(psutil.cpu_percent, interval=None, percpu=True)

    async def mem(self) -> Memory:
        def _collect():
            vm = psutil.virtual_memory()
            swap = psutil.swap_memory()
            return Memory(
                total=vm.total,
                free=vm.free,
                used=vm.used,
                active=getattr(vm, "active", None),
                swaptotal=swap.total,
                swapfree=swap.free,
                swapused=swap.used,
            )

        return await asyncio.to_thread(_collect)

    # ================= NETWORK =================
    async def network_interfaces(self) -> List[str]:
        """Names of the interfaces that are not loopback."""

        def _collect():
            return [
                iface
                for iface, addrs in psutil.net_if_addrs().items()
                if not any(
                    a.family in (socket.AF_INET, socket.AF_INET6) and _is_loopback(a.address)
                    for a in addrs
                )
            ]

        return await asyncio.to_thread(_collect)

    async def network_stats(self, iface: str) -> Optional[NetworkStats]:
        counters = await asyncio.to_thread(psutil.net_io_counters, pernic=True)
        for gone in set(self._net_prev) - set(counters):
            del self._net_prev[gone]

        if iface not in counters:
            return None

        now = self._clock()
        current = counters[iface]
        previous = self._net_prev.get(iface)
        self._net_prev[iface] = (now, current.bytes_recv, current.bytes_sent)
        if previous is None:
            return None

        elapsed = now - previous[0]
        if elapsed <= 0:
            return None
        return NetworkStats(
            iface=iface,
            rx_sec=round((current.bytes_recv - previous[1]) / elapsed, 2),
            tx_sec=round((current.bytes_sent - previous[2]) / elapsed, 2),
        )

    async def inet_latency(self) -> float:
        """Milliseconds to open a TCP connection to the latency host."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(self.latency_host, self.latency_port),
            timeout=self.latency_timeout,
        )
        elapsed = loop.time() - started
        writer.close()
        await writer.wait_closed()
        return round(elapsed * 1000, 2)

    # ================= DISKS =================
    async def fs_size(self) -> List[FsSize]:
        def _collect():
            sizes = []
            for part in psutil.disk_partitions(all=False):
                try:
                    usage = psutil.disk_usage(part.mountpoint)
                except (PermissionError, FileNotFoundError):
                    # e.g. empty cd-rom drives, mounts hidden from this user
                    continue
                sizes.append(FsSize(fs=part.device, type=part.fstype, mount=part.mountpoint, use=usage.percent))
            return sizes

        return await asyncio.to_thread(_collect)

    async def disks_io(self) -> Optional[DisksIO]:
        counters = await asyncio.to_thread(psutil.disk_io_counters)
        if counters is None:
            return None

        now = self._clock()
        previous = self._disk_prev
        self._disk_prev = (now, counters.read_count, counters.write_count)
        if previous is None:
            return None

        elapsed = now - previous[0]
        if elapsed <= 0:
            return None
        return DisksIO(
            r_io_sec=round((counters.read_count - previous[1]) / elapsed, 2),
            w_io_sec=round((counters.write_count - previous[2]) / elapsed, 2),
        )

    # ================= MISC =================
    async def battery(self) -> Battery:
        data = None
        if hasattr(psutil, "sensors_battery"):
            data = await asyncio.to_thread(psutil.sensors_battery)
        if data is None:
            return Battery(hasbattery=False, percent=0.0)
        return Battery(hasbattery=True, percent=data.percent)

    def uptime(self) -> float:
        return time.time() - psutil.boot_time()

    def platform(self) -> str:
        return sys.platform
