"""Configuration for Badware.

Two kinds of configuration live here:

- SiteConfig: the deployed site's origin, base path, integrations and site
  constants, loaded from ``badware.yaml`` in the project root.
- DevConfig: the dev server bind address for ``dev-solo``, read once from the
  ``DEV_PORT`` and ``DEV_HOST`` environment variables.

Both are immutable records built once at startup and passed explicitly to the
components that need them.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "badware.yaml"

_DIGITS_RE = re.compile(r"[0-9]+")

DEFAULT_DEV_PORT = 4977
DEFAULT_DEV_HOST = "127.0.0.1"

DEFAULT_CONFIG: dict[str, Any] = {
    "site": "https://johngithubby.github.io",
    "base": "/badware",
    "integrations": ["mdx", "sitemap"],
    "title": "Badware",
    "description": "Notes on software that misbehaves.",
    "content_dir": "content",
    "public_dir": "public",
    "output_dir": "dist",
    "port": 4321,
}


class ConfigError(Exception):
    """Invalid configuration value.

    Attributes:
        name: Name of the setting (e.g. ``DEV_PORT``).
        value: The raw value that failed validation.
        message: Human-readable error message.
    """

    def __init__(self, name: str, value: Any, message: str):
        self.name = name
        self.value = value
        self.message = message
        super().__init__(f"{name}: {message}")


def normalize_base(base: str | None) -> str:
    """Normalise a base path so it starts and ends with a slash.

    Examples:
        >>> normalize_base("/badware")
        '/badware/'

        >>> normalize_base("")
        '/'
    """
    stripped = (base or "").strip().strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}/"


def parse_port(raw: str | None, name: str = "DEV_PORT", default: int = DEFAULT_DEV_PORT) -> int:
    """Parse a TCP port from a raw string.

    Unset or empty values fall back to ``default``. Anything that is not a
    base-10 integer in 1..65535 raises ConfigError.
    """
    if raw is None or raw.strip() == "":
        return default
    text = raw.strip()
    if not _DIGITS_RE.fullmatch(text):
        raise ConfigError(name, raw, f"Invalid {name} value: {raw}")
    port = int(text)
    if port <= 0 or port > 65535:
        raise ConfigError(name, raw, f"Invalid {name} value: {raw}")
    return port


@dataclass(frozen=True)
class DevConfig:
    """Bind address for the single-instance dev server.

    Attributes:
        port: Target TCP port. The dev server never falls back to another one.
        host: Bind address passed to the dev server.
    """

    port: int = DEFAULT_DEV_PORT
    host: str = DEFAULT_DEV_HOST

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DevConfig:
        """Build the config from ``DEV_PORT`` / ``DEV_HOST``.

        Raises:
            ConfigError: If ``DEV_PORT`` is not a valid port number.
        """
        env = os.environ if environ is None else environ
        port = parse_port(env.get("DEV_PORT"))
        host = env.get("DEV_HOST") or DEFAULT_DEV_HOST
        return cls(port=port, host=host)


@dataclass(frozen=True)
class SiteConfig:
    """Site-wide settings consumed by the content, feed, server and build modules.

    Attributes:
        project_root: Directory holding ``badware.yaml``.
        site: Origin URL of the deployed site.
        base: Base path the site is served under, always slash-terminated.
        integrations: Enabled integrations (``mdx``, ``sitemap``, ...).
        title: Site title constant, used as the feed title.
        description: Site description constant, used as the feed description.
        content_dir: Directory holding content collections.
        public_dir: Directory of static files copied/served verbatim.
        output_dir: Directory the static build writes into.
        port: Default port for ``badware serve``.
    """

    project_root: Path
    site: str
    base: str
    integrations: tuple[str, ...]
    title: str
    description: str
    content_dir: Path
    public_dir: Path
    output_dir: Path
    port: int

    def has_integration(self, name: str) -> bool:
        return name in self.integrations


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from badware.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with defaults applied for missing keys.

    Raises:
        ConfigError: If the file is not valid YAML or the configured port is
            not a valid port number.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(
                    CONFIG_FILENAME, None, f"Invalid YAML in {CONFIG_FILENAME}: {exc}"
                ) from exc
            if isinstance(loaded, dict):
                config.update(loaded)

    raw_port = config.get("port")
    integrations = config.get("integrations") or []
    if isinstance(integrations, str):
        integrations = [integrations]
    return SiteConfig(
        project_root=project_root,
        site=str(config.get("site") or "").rstrip("/"),
        base=normalize_base(config.get("base")),
        integrations=tuple(str(name) for name in integrations),
        title=str(config.get("title") or DEFAULT_CONFIG["title"]),
        description=str(config.get("description") or ""),
        content_dir=project_root / str(config.get("content_dir") or "content"),
        public_dir=project_root / str(config.get("public_dir") or "public"),
        output_dir=project_root / str(config.get("output_dir") or "dist"),
        port=parse_port(
            None if raw_port is None else str(raw_port), name="port", default=4321
        ),
    )
