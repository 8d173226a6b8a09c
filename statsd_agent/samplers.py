"""
One coroutine per metric family.

Each sampler queries the provider once, normalizes the reading, tags it and
sends everything it produced as one datagram. Provider errors are left to the
caller; the scheduler logs them.
"""

from .delta import DeltaTracker
from .models import MetricType
from .statsd import StatsdEncoder, tag

MEMORY_KINDS = ("free", "used", "active")
SWAP_KINDS = ("free", "used")


class Samplers:
    def __init__(self, provider, encoder: StatsdEncoder, transport, tracker: DeltaTracker):
        self.provider = provider
        self.encoder = encoder
        self.transport = transport
        self.tracker = tracker

    def fast_tier(self):
        return [self.cpu_usage, self.memory, self.network, self.uptime, self.disk_io]

    def medium_tier(self):
        return [self.latency, self.disk_usage, self.battery]

    # ================= FAST =================
    async def cpu_usage(self):
        loads = await self.provider.current_load()
        self.transport.send(
            [
                self.encoder.encode("cpu_usage", round(load), MetricType.COUNTER, [tag("cpu", index)])
                for index, load in enumerate(loads)
            ]
        )

    async def memory(self):
        data = await self.provider.mem()
        lines = []
        for kind in MEMORY_KINDS:
            used = getattr(data, kind)
            if used is None or not data.total:
                continue
            lines.append(
                self.encoder.encode("ram", round(used / data.total, 4), MetricType.COUNTER, [tag("memory", kind)])
            )
        if data.swaptotal:
            for kind in SWAP_KINDS:
                used = getattr(data, f"swap{kind}")
                lines.append(
                    self.encoder.encode(
                        "swap", round(used / data.swaptotal, 4), MetricType.COUNTER, [tag("memory", kind)]
                    )
                )
        self.transport.send(lines)

    async def network(self):
        for iface in await self.provider.network_interfaces():
            stats = await self.provider.network_stats(iface)
            if stats is None or stats.rx_sec < 0 or stats.tx_sec < 0:
                continue
            self.transport.send(
                [
                    self.encoder.encode(
                        "network", stats.rx_sec, MetricType.COUNTER, [tag("interface", iface), tag("direction", "rx")]
                    ),
                    self.encoder.encode(
                        "network", stats.tx_sec, MetricType.COUNTER, [tag("interface", iface), tag("direction", "tx")]
                    ),
                ]
            )

    async def uptime(self):
        self.transport.send(self.encoder.encode("uptime", int(self.provider.uptime()), MetricType.COUNTER))

    async def disk_io(self):
        if self.provider.platform() == "win32":
            return
        data = await self.provider.disks_io()
        if data is None:
            return
        self.transport.send(
            [
                self.encoder.encode("diskio", data.r_io_sec, MetricType.COUNTER, [tag("direction", "read")]),
                self.encoder.encode("diskio", data.w_io_sec, MetricType.COUNTER, [tag("direction", "write")]),
            ]
        )

    # ================= MEDIUM =================
    async def latency(self):
        # latency is infrequent, so it is a gauge of changes starting from 0
        ms = await self.provider.inet_latency()
        value = self.tracker.track("latency", ms, baseline=0, ndigits=2)
        self.transport.send(self.encoder.encode("latency", value, MetricType.GAUGE))

    async def disk_usage(self):
        lines = []
        for device in await self.provider.fs_size():
            use = round(device.use, 3)
            # windows drive letters: "C:" -> "C"
            mount = device.mount.replace(":", "")
            value = self.tracker.track(("disk", mount), use, ndigits=3)
            lines.append(
                self.encoder.encode(
                    "disk_usage",
                    value,
                    MetricType.GAUGE,
                    [tag("type", device.type), tag("mount", mount), tag("fs", device.fs.replace(":", ""))],
                )
            )
        self.transport.send(lines)

    async def battery(self):
        data = await self.provider.battery()
        if not data.hasbattery:
            return
        value = self.tracker.track("battery", round(data.percent, 2), ndigits=2)
        self.transport.send(self.encoder.encode("battery", value, MetricType.GAUGE))
