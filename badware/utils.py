"""Utility functions for Badware.

Key functions:
    is_internal_path: Check for ``_``-prefixed path components.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_tree: Copy a directory's files into another directory.
    join_root_url: Join an origin URL with a path.
    escape_xml: Escape text for XML element content.
    format_rfc822: Format a date for RSS.
"""

from __future__ import annotations

import shutil
from datetime import date, datetime, time, timezone
from pathlib import Path


def is_internal_path(path: Path) -> bool:
    """Check if a path is internal (contains components starting with _).

    Args:
        path: Path to check.

    Returns:
        True if any path component starts with underscore.
    """
    return any(part.startswith("_") for part in path.parts)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def copy_tree(source: Path, dest: Path) -> list[Path]:
    """Copy every file under ``source`` into ``dest``, keeping relative paths.

    Returns:
        Destination paths of the copied files. A missing source copies nothing.
    """
    copied: list[Path] = []
    if not source.is_dir():
        return copied
    for src_path in sorted(source.rglob("*")):
        if src_path.is_dir():
            continue
        dest_path = dest / src_path.relative_to(source)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
        copied.append(dest_path)
    return copied


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com', '/badware/blog/')
        'https://example.com/badware/blog/'

        >>> join_root_url('', '/badware/')
        '/badware/'
    """
    if not root_url:
        return path
    if path.startswith(("http://", "https://")):
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def escape_xml(text: str) -> str:
    """Escape special XML characters in a string.

    Examples:
        >>> escape_xml('Tom & "Jerry" <3')
        'Tom &amp; &quot;Jerry&quot; &lt;3'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def to_datetime(value: object) -> datetime | None:
    """Coerce a frontmatter date (date, datetime or ISO string) to an aware datetime."""
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time())
    elif isinstance(value, str) and value.strip():
        try:
            result = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def format_rfc822(value: datetime) -> str:
    """Format a datetime the way RSS ``pubDate`` expects (in UTC)."""
    return value.astimezone(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S +0000")
