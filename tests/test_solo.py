import pytest

from badware.launcher import ExitOutcome, ServerLauncher
from badware.ports import GRACE_PERIOD, PortReclaimer
from badware.solo import run_dev_solo


class FakeProbe:
    def __init__(self, pids=(), ignores_term=False, rebinds=False):
        self.listeners = set(pids)
        self.ignores_term = ignores_term
        self.rebinds = rebinds
        self.signals = []
        self.queries = []

    def list_listeners(self, port):
        self.queries.append(port)
        return set(self.listeners)

    def terminate(self, pid, force=False):
        self.signals.append((pid, force))
        if force:
            self.listeners.discard(pid)
            if self.rebinds:
                self.listeners.add(pid + 1)
        elif not self.ignores_term:
            self.listeners.discard(pid)


class FakeLauncher:
    def __init__(self, outcome=ExitOutcome(exit_code=0)):
        self.outcome = outcome
        self.runs = []

    def run(self, port, host):
        self.runs.append((port, host))
        return self.outcome


def quiet_reclaimer(probe, slept=None):
    return PortReclaimer(
        probe,
        sleep=(slept.append if slept is not None else lambda secs: None),
        log=lambda *a, **k: None,
    )


@pytest.mark.parametrize("raw", ["abc", "0", "-5", "2.5", "99999"])
def test_invalid_port_exits_without_side_effects(raw, capsys):
    probe = FakeProbe({1})
    launcher = FakeLauncher()
    status = run_dev_solo({"DEV_PORT": raw}, reclaimer=quiet_reclaimer(probe), launcher=launcher)
    assert status == 1
    assert probe.queries == []
    assert probe.signals == []
    assert launcher.runs == []
    assert "[dev:solo] Invalid DEV_PORT value" in capsys.readouterr().err


def test_scenario_free_port_spawns_strict_server(capsys):
    probe = FakeProbe()
    spawned = {}

    class Process:
        def wait(self):
            return 0

    def fake_popen(args, env=None):
        spawned["args"] = args
        return Process()

    launcher = ServerLauncher(environ={}, popen=fake_popen)
    status = run_dev_solo(
        {"DEV_PORT": "4977"}, reclaimer=quiet_reclaimer(probe), launcher=launcher
    )
    assert status == 0
    assert probe.signals == []
    assert spawned["args"][3:] == [
        "serve",
        "--port",
        "4977",
        "--strictPort",
        "--host",
        "127.0.0.1",
    ]
    out = capsys.readouterr().out
    assert "[dev:solo] Target port: 4977" in out
    assert "[dev:solo] Port 4977 is free." in out


def test_scenario_graceful_listener_is_reclaimed():
    probe = FakeProbe({321})
    slept = []
    launcher = FakeLauncher()
    status = run_dev_solo(
        {"DEV_PORT": "5000"}, reclaimer=quiet_reclaimer(probe, slept), launcher=launcher
    )
    assert status == 0
    assert probe.signals == [(321, False)]
    assert all(force is False for _, force in probe.signals)
    assert slept == [GRACE_PERIOD]
    assert launcher.runs == [(5000, "127.0.0.1")]


def test_scenario_stubborn_listener_aborts(capsys):
    probe = FakeProbe({900}, ignores_term=True, rebinds=True)
    launcher = FakeLauncher()
    reclaimer = quiet_reclaimer(probe)
    attempts = []
    original = reclaimer.kill_listeners

    def counting_kill(port):
        attempts.append(port)
        return original(port)

    reclaimer.kill_listeners = counting_kill
    status = run_dev_solo({"DEV_PORT": "5000"}, reclaimer=reclaimer, launcher=launcher)
    assert status == 1
    assert launcher.runs == []
    # one up-front kill plus six retry attempts
    assert len(attempts) == 7
    assert any(force for _, force in probe.signals)
    err = capsys.readouterr().err
    assert "Could not free port 5000 after retries. Aborting." in err


def test_child_exit_code_is_adopted():
    launcher = FakeLauncher(ExitOutcome(exit_code=7))
    status = run_dev_solo(
        {"DEV_PORT": "4977", "DEV_HOST": "0.0.0.0"},
        reclaimer=quiet_reclaimer(FakeProbe()),
        launcher=launcher,
    )
    assert status == 7
    assert launcher.runs == [(4977, "0.0.0.0")]


def test_child_killed_by_signal_exits_zero():
    launcher = FakeLauncher(ExitOutcome(exit_code=None, signal="SIGTERM"))
    status = run_dev_solo(
        {}, reclaimer=quiet_reclaimer(FakeProbe()), launcher=launcher
    )
    assert status == 0
