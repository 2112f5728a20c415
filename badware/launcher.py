"""Dev server launcher.

Starts exactly one ``badware serve`` process bound to the requested host and
port in strict port mode, streams its output to the terminal, and reports how
it ended so the caller can exit with the same status.
"""

from __future__ import annotations

import os
import signal
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from .ports import echo

COLOR_ENV = {"FORCE_COLOR": "1", "BADWARE_FORCE_COLOR": "1"}


@dataclass(frozen=True)
class ExitOutcome:
    """How the dev server process ended.

    Attributes:
        exit_code: Exit status, or None when the process was killed by a signal.
        signal: Signal name (e.g. ``SIGTERM``) when killed by a signal.
    """

    exit_code: int | None = None
    signal: str | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> ExitOutcome:
        """Translate a ``Popen.returncode`` (negative means killed by signal)."""
        if returncode < 0:
            try:
                name = signal.Signals(-returncode).name
            except ValueError:
                name = f"SIG{-returncode}"
            return cls(exit_code=None, signal=name)
        return cls(exit_code=returncode)

    @property
    def exit_status(self) -> int:
        """Exit status for this process; a signal without a code counts as 0."""
        return self.exit_code if self.exit_code is not None else 0


def dev_server_command(port: int, host: str) -> list[str]:
    """Command line for a dev server pinned to ``host:port``."""
    return [
        sys.executable,
        "-m",
        "badware",
        "serve",
        "--port",
        str(port),
        "--strictPort",
        "--host",
        host,
    ]


class ServerLauncher:
    """Runs the dev server as a child process and mirrors its lifecycle."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        log: Callable[..., None] = echo,
    ):
        self._environ = environ
        self._popen = popen
        self._log = log

    def launch(self, port: int, host: str) -> subprocess.Popen:
        """Spawn the dev server with inherited stdio and forced colour output."""
        args = dev_server_command(port, host)
        self._log(f"Spawn: {' '.join(args)}")
        env = dict(os.environ if self._environ is None else self._environ)
        env.update(COLOR_ENV)
        return self._popen(args, env=env)

    def wait(self, process: subprocess.Popen) -> ExitOutcome:
        """Wait for ``process`` to exit.

        An interrupt reaches the child through the process group, so the
        parent keeps waiting for it to finish shutting down.
        """
        while True:
            try:
                returncode = process.wait()
            except KeyboardInterrupt:
                continue
            return ExitOutcome.from_returncode(returncode)

    def run(self, port: int, host: str) -> ExitOutcome:
        """Launch the dev server and block until it exits."""
        process = self.launch(port, host)
        outcome = self.wait(process)
        self._log(
            f"Dev server exited code={outcome.exit_code} sig={outcome.signal or ''}"
        )
        return outcome
