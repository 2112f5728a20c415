"""Single-instance dev server routine behind ``badware dev-solo``.

Runs the stages in strict sequence: validate the configuration, reclaim the
target port, confirm it is free, then launch the dev server and adopt its exit
status. A bad ``DEV_PORT`` or a port that cannot be freed ends the run with
status 1 before anything is spawned.
"""

from __future__ import annotations

from collections.abc import Mapping

from .config import ConfigError, DevConfig
from .launcher import ServerLauncher
from .ports import DEFAULT_ATTEMPTS, PortReclaimer, echo


def run_dev_solo(
    environ: Mapping[str, str] | None = None,
    reclaimer: PortReclaimer | None = None,
    launcher: ServerLauncher | None = None,
    max_attempts: int = DEFAULT_ATTEMPTS,
) -> int:
    """Free the configured port and run the dev server on it.

    Args:
        environ: Environment to read ``DEV_PORT`` / ``DEV_HOST`` from
            (defaults to ``os.environ``).
        reclaimer: Port reclaimer to use.
        launcher: Server launcher to use.
        max_attempts: Reclaim attempts before giving up.

    Returns:
        Exit status for the calling process.
    """
    try:
        config = DevConfig.from_env(environ)
    except ConfigError as exc:
        echo(exc.message, err=True)
        return 1

    reclaimer = reclaimer or PortReclaimer()
    launcher = launcher or ServerLauncher(environ=environ)

    echo(f"Target port: {config.port}")
    reclaimer.kill_listeners(config.port)
    if not reclaimer.ensure_free(config.port, max_attempts):
        echo(f"Could not free port {config.port} after retries. Aborting.", err=True)
        return 1

    echo(f"Port {config.port} is free. Launching dev server (host={config.host})...")
    outcome = launcher.run(config.port, config.host)
    return outcome.exit_status
