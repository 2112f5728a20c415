"""Static build for Badware.

Writes the deployable site into the output directory: the ``public/`` files
copied verbatim, plus every registered route (the RSS feed) rendered once.

Key functions:
- build_site: Build the site into the output directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import load_config
from .content import ContentCollections, ContentEntry
from .feeds import BLOG_COLLECTION, RouteContext, create_default_route_registry
from .utils import copy_tree, ensure_clean_dir


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        output_dir: Directory where the site was built.
        entries: Blog entries included in the build.
        files: Files written into the output directory.
    """

    output_dir: Path
    entries: list[ContentEntry]
    files: list[Path]


def build_site(project_root: Path, include_drafts: bool = False) -> BuildResult:
    """Build the static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include entries marked as drafts.

    Returns:
        BuildResult with the output directory and the files written.
    """
    config = load_config(project_root)
    output_dir = config.output_dir
    ensure_clean_dir(output_dir)

    collections = ContentCollections.from_config(config, include_drafts=include_drafts)
    context = RouteContext(config=config, collections=collections)

    files = copy_tree(config.public_dir, output_dir)
    files.extend(create_default_route_registry().write_all(output_dir, context))
    return BuildResult(
        output_dir=output_dir,
        entries=collections.get_collection(BLOG_COLLECTION),
        files=files,
    )
