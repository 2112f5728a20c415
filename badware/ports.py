"""Port reclamation for the single-instance dev server.

Before ``dev-solo`` launches the dev server it makes sure nothing else is
listening on the target port: listeners get a graceful termination signal,
a short grace period, then a forceful kill if they are still around. The
whole sequence is retried a bounded number of times because another process
may keep re-binding the port between checks.

Key classes:
- SystemListenerProbe: ListenerProbe backed by ``lsof`` (or ``ss``) and ``os.kill``.
- PortReclaimer: Retry/orchestration logic, independent of the OS.
"""

from __future__ import annotations

import os
import re
import signal
import subprocess
import time
from collections.abc import Callable, Iterable

import click

from .executable_utils import find_executable
from .protocols import ListenerProbe, ListenerQueryError

LOG_PREFIX = "[dev:solo]"

# Seconds between the graceful signal and the re-check.
GRACE_PERIOD = 0.4
# Seconds between reclaim attempts.
RETRY_DELAY = 0.3
DEFAULT_ATTEMPTS = 6

_PID_RE = re.compile(r"pid=(\d+)")

_FORCE_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


def echo(message: str, err: bool = False) -> None:
    """Print a ``[dev:solo]`` diagnostic line."""
    click.echo(f"{LOG_PREFIX} {message}", err=err)


def _format_pids(pids: Iterable[int]) -> str:
    return ", ".join(str(pid) for pid in sorted(pids))


class SystemListenerProbe:
    """Find listeners with ``lsof``, falling back to ``ss``; signal with ``os.kill``."""

    def list_listeners(self, port: int) -> set[int]:
        lsof = find_executable("lsof")
        if lsof:
            return self._query_lsof(lsof, port)
        ss = find_executable("ss")
        if ss:
            return self._query_ss(ss, port)
        raise ListenerQueryError("neither lsof nor ss is available")

    def terminate(self, pid: int, force: bool = False) -> None:
        os.kill(pid, _FORCE_SIGNAL if force else signal.SIGTERM)

    def _query_lsof(self, lsof: str, port: int) -> set[int]:
        output = self._run([lsof, f"-tiTCP:{port}", "-sTCP:LISTEN"])
        return {int(token) for token in output.split() if token.isdigit()}

    def _query_ss(self, ss: str, port: int) -> set[int]:
        output = self._run([ss, "-H", "-ltnp", f"sport = :{port}"])
        return {int(match) for match in _PID_RE.findall(output)}

    def _run(self, cmd: list[str]) -> str:
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ListenerQueryError(f"{cmd[0]} failed: {exc}") from exc
        # lsof exits 1 when nothing matches
        if result.returncode not in (0, 1):
            raise ListenerQueryError(
                f"{cmd[0]} exited with status {result.returncode}"
            )
        return result.stdout


class PortReclaimer:
    """Frees a TCP port by terminating whatever is listening on it.

    Attributes:
        probe: OS capability used to list and signal listeners.
    """

    def __init__(
        self,
        probe: ListenerProbe | None = None,
        sleep: Callable[[float], None] | None = None,
        log: Callable[..., None] = echo,
    ):
        self.probe = probe if probe is not None else SystemListenerProbe()
        self._sleep = sleep
        self._log = log
        self._query_warned = False

    def listening_process_ids(self, port: int) -> set[int]:
        """Return the PIDs listening on ``port``.

        Query failures are treated as "nothing listening": the caller never
        sees an exception from here.
        """
        try:
            return set(self.probe.list_listeners(port))
        except (ListenerQueryError, OSError) as exc:
            if not self._query_warned:
                self._log(f"Could not query listeners on {port} ({exc}); assuming free.", err=True)
                self._query_warned = True
            return set()

    def kill_listeners(self, port: int) -> bool:
        """Terminate every listener on ``port``, gracefully first.

        Returns:
            True if any termination was attempted, False if the port was free.
        """
        pids = self.listening_process_ids(port)
        if not pids:
            return False
        self._log(f"Found listener(s) on {port}: {_format_pids(pids)}")
        self._signal_all(pids, force=False)
        self._wait(GRACE_PERIOD)
        still = self.listening_process_ids(port)
        if still:
            self._log(f"Forcing SIGKILL for: {_format_pids(still)}")
            self._signal_all(still, force=True)
        return True

    def ensure_free(self, port: int, max_attempts: int = DEFAULT_ATTEMPTS) -> bool:
        """Retry reclamation until ``port`` is free or attempts run out.

        Returns:
            True if the port is free, False if it is still occupied after
            ``max_attempts`` reclaim attempts.
        """
        for attempt in range(1, max_attempts + 1):
            pids = self.listening_process_ids(port)
            if not pids:
                return True
            self._log(
                f"Attempt {attempt}/{max_attempts}: port still busy "
                f"({_format_pids(pids)}), re-killing..."
            )
            self.kill_listeners(port)
            self._wait(RETRY_DELAY)
        return not self.listening_process_ids(port)

    def _signal_all(self, pids: Iterable[int], force: bool) -> None:
        for pid in sorted(pids):
            try:
                self.probe.terminate(pid, force=force)
            except OSError:
                # Already gone or not ours; the next query is what counts.
                continue

    def _wait(self, seconds: float) -> None:
        if self._sleep is not None:
            self._sleep(seconds)
        else:
            time.sleep(seconds)
