"""
Tests for the command line entry point and the run loop.
"""

import asyncio

import pytest

from statsd_agent import agent, service


@pytest.fixture
def calls(monkeypatch):
    recorded = []
    monkeypatch.setattr(service, "add", lambda *args, **kwargs: recorded.append(("add", args, kwargs)))
    monkeypatch.setattr(service, "remove", lambda *args, **kwargs: recorded.append(("remove", args, kwargs)))
    return recorded


class TestMain:
    def test_no_arguments_prints_usage(self, capsys):
        assert agent.main([]) == 0
        assert "usage: statsd-agent --add" in capsys.readouterr().out

    def test_add_without_credentials(self, calls, capsys):
        assert agent.main(["--add"]) == 0
        assert calls == [("add", ("statsd-agent", ["--run"]), {"username": None, "password": None})]
        out = capsys.readouterr().out
        assert "adding service..." in out
        assert "service added. Metrics sending to" in out

    def test_add_with_user_and_password(self, calls):
        agent.main(["--add", "metrics", "secret"])
        assert calls[0][2] == {"username": "metrics", "password": "secret"}

    def test_add_too_many_arguments(self, calls):
        with pytest.raises(SystemExit):
            agent.main(["--add", "a", "b", "c"])
        assert calls == []

    def test_add_failure_is_reported(self, monkeypatch, capsys):
        def fail(*args, **kwargs):
            raise service.ServiceError("Access denied")

        monkeypatch.setattr(service, "add", fail)
        assert agent.main(["--add"]) == 1
        assert "Access denied" in capsys.readouterr().err

    def test_remove(self, calls, capsys):
        assert agent.main(["--remove"]) == 0
        assert calls == [("remove", ("statsd-agent",), {})]
        assert "service removed" in capsys.readouterr().out

    def test_remove_failure_is_reported(self, monkeypatch, capsys):
        def fail(*args, **kwargs):
            raise service.ServiceError("not installed")

        monkeypatch.setattr(service, "remove", fail)
        assert agent.main(["--remove"]) == 1
        assert "not installed" in capsys.readouterr().err

    def test_unknown_option(self):
        with pytest.raises(SystemExit):
            agent.main(["--bogus"])

    def test_run_and_remove_are_exclusive(self):
        with pytest.raises(SystemExit):
            agent.main(["--run", "--remove"])


@pytest.mark.asyncio
async def test_run_starts_and_stops(monkeypatch, capsys):
    sent = []

    class QuietTransport:
        async def connect(self):
            pass

        def send(self, message):
            sent.append(message)

        def close(self):
            sent.append("closed")

    class IdleScheduler:
        def __init__(self, samplers, tracker, interval):
            self.started = False

        def start(self):
            sent.append("started")

        async def stop(self):
            sent.append("stopped")

    monkeypatch.setattr(agent, "UdpTransport", QuietTransport)
    monkeypatch.setattr(agent, "Scheduler", IdleScheduler)

    stop = asyncio.Event()
    task = asyncio.create_task(agent.run(stop))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert sent == ["started", "stopped", "closed"]
    out = capsys.readouterr().out
    assert "running..." in out
    assert "stopping..." in out


@pytest.mark.asyncio
async def test_run_survives_unreachable_statsd(monkeypatch, caplog):
    from statsd_agent.transport import UdpTransport

    class IdleScheduler:
        def __init__(self, samplers, tracker, interval):
            pass

        def start(self):
            pass

        async def stop(self):
            pass

    monkeypatch.setattr(agent, "UdpTransport", lambda: UdpTransport("no-such-host.invalid", 8125, debug=False))
    monkeypatch.setattr(agent, "Scheduler", IdleScheduler)

    stop = asyncio.Event()
    stop.set()
    await asyncio.wait_for(agent.run(stop), timeout=5)
    assert "cannot reach statsd" in caplog.text
