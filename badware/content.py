"""Content collections for Badware.

A collection is a folder under the content directory (``content/blog/``).
Each Markdown file in it becomes a ContentEntry whose ``data`` is the YAML
frontmatter and whose ``id`` is derived from its path inside the collection.
The body is kept as raw text and never rendered here.

Key classes:
- ContentEntry: One item of a collection.
- ContentCollections: Loads collections from a content directory.
- ContentError: A content file could not be loaded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import SiteConfig
from .utils import is_internal_path

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)


class ContentError(Exception):
    """Error loading a content file.

    Attributes:
        source_path: Path to the content file that could not be loaded.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class ContentEntry:
    """A single entry of a content collection.

    Attributes:
        id: Identifier derived from the file path (e.g. ``hello-world``).
        collection: Name of the collection the entry belongs to.
        data: Frontmatter fields (title, description, pubDate, ...).
        body: Raw body text after the frontmatter.
        path: Path to the source file.
    """

    id: str
    collection: str
    data: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    path: Path | None = None

    @property
    def draft(self) -> bool:
        return bool(self.data.get("draft", False))


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Malformed or
        non-mapping frontmatter yields an empty dict and the untouched text.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


def entry_id(relative: Path) -> str:
    """Derive an entry id from a path relative to its collection folder.

    Examples:
        >>> entry_id(Path("Hello World.md"))
        'hello-world'

        >>> entry_id(Path("2024/first-post.mdx"))
        '2024/first-post'
    """
    parts = list(relative.with_suffix("").parts)
    slugs = []
    for part in parts:
        slug = re.sub(r"[^a-zA-Z0-9]+", "-", part).strip("-").lower()
        if slug:
            slugs.append(slug)
    return "/".join(slugs) or "index"


class ContentCollections:
    """Loads content collections from the configured content directory.

    Attributes:
        content_dir: Directory holding one sub-folder per collection.
        extensions: File suffixes treated as collection entries.
        include_drafts: Whether entries marked ``draft: true`` are loaded.
    """

    def __init__(
        self,
        content_dir: Path,
        extensions: tuple[str, ...] = (".md",),
        include_drafts: bool = False,
    ):
        self.content_dir = content_dir
        self.extensions = extensions
        self.include_drafts = include_drafts

    @classmethod
    def from_config(
        cls, config: SiteConfig, include_drafts: bool = False
    ) -> ContentCollections:
        """Build a loader honouring the ``mdx`` integration setting."""
        extensions: tuple[str, ...] = (".md",)
        if config.has_integration("mdx"):
            extensions = (".md", ".mdx")
        return cls(config.content_dir, extensions, include_drafts=include_drafts)

    def get_collection(self, name: str) -> list[ContentEntry]:
        """Load every entry of the named collection, ordered by id.

        A missing collection folder is an empty collection. Files or folders
        starting with ``_`` are ignored, and entries with ``draft: true`` are
        skipped unless the loader includes drafts.
        """
        root = self.content_dir / name
        if not root.is_dir():
            return []
        entries = []
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            relative = path.relative_to(root)
            if is_internal_path(relative):
                continue
            entry = self._load_entry(name, path, relative)
            if entry.draft and not self.include_drafts:
                continue
            entries.append(entry)
        entries.sort(key=lambda e: e.id)
        return entries

    def _load_entry(self, collection: str, path: Path, relative: Path) -> ContentEntry:
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ContentError(
                path, f"Not valid UTF-8: {exc.reason} at byte {exc.start}", exc
            ) from exc
        except OSError as exc:
            raise ContentError(
                path, f"Could not read file: {exc.strerror or exc}", exc
            ) from exc
        data, body = extract_frontmatter(text)
        slug = data.get("slug")
        identifier = str(slug).strip("/") if slug else entry_id(relative)
        return ContentEntry(
            id=identifier,
            collection=collection,
            data=data,
            body=body,
            path=path,
        )
