import pytest

from statsd_agent.delta import DeltaTracker
from statsd_agent.provider import Battery, DisksIO, FsSize, Memory, NetworkStats
from statsd_agent.samplers import Samplers
from statsd_agent.statsd import StatsdEncoder


class FakeTransport:
    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append([message] if isinstance(message, str) else list(message))

    @property
    def lines(self):
        return [line for datagram in self.sent for line in datagram]


class FakeProvider:
    def __init__(self):
        self.loads = [12.4, 87.6]
        self.memory = Memory(total=1000, free=250, used=750, active=500, swaptotal=200, swapfree=150, swapused=50)
        self.interfaces = ["eth0"]
        self.stats = {"eth0": NetworkStats(iface="eth0", rx_sec=1024.0, tx_sec=512.5)}
        self.latencies = [20.0]
        self.filesystems = [FsSize(fs="/dev/sda1", type="ext4", mount="/", use=41.23456)]
        self.battery_reading = Battery(hasbattery=True, percent=80.0)
        self.io = DisksIO(r_io_sec=3.5, w_io_sec=7.0)
        self.system = "linux"
        self.seconds_up = 3600.7

    async def current_load(self):
        return self.loads

    async def mem(self):
        return self.memory

    async def network_interfaces(self):
        return self.interfaces

    async def network_stats(self, iface):
        return self.stats.get(iface)

    async def inet_latency(self):
        return self.latencies.pop(0)

    async def fs_size(self):
        return self.filesystems

    async def battery(self):
        return self.battery_reading

    async def disks_io(self):
        return self.io

    def uptime(self):
        return self.seconds_up

    def platform(self):
        return self.system


@pytest.fixture
def encoder():
    return StatsdEncoder(hostname="h1", prefix="_t_")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def tracker():
    return DeltaTracker()


@pytest.fixture
def samplers(provider, encoder, transport, tracker):
    return Samplers(provider, encoder, transport, tracker)
