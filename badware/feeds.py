"""Feed routes for Badware.

Routes are small GET handlers that turn site content into a document (the
RSS feed being the only one today). The dev server answers them on request
and the static build writes their output into the output directory, so both
stay in sync.

Classes:
    RouteContext: What a route handler gets to work with.
    RouteResponse: Body and content type produced by a route.
    FeedItem: One entry of the RSS feed.
    RSSFeed: Serializes feed items into an RSS 2.0 document.
    Route: Base class for routes served at a fixed filename.
    RSSRoute: The ``rss.xml`` route.
    RouteRegistry: Registry for managing routes.

Functions:
    feed_items: Map blog entries to feed items.
    get_rss: GET handler for the RSS feed.
    create_default_route_registry: Create a registry with the default routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import normalize_base
from .utils import escape_xml, format_rfc822, join_root_url, to_datetime

if TYPE_CHECKING:
    from .config import SiteConfig
    from .content import ContentEntry
    from .protocols import CollectionSource

BLOG_COLLECTION = "blog"


@dataclass(frozen=True)
class RouteContext:
    """Context passed to route handlers.

    Attributes:
        config: Site configuration (origin, base path, site constants).
        collections: Source of content collections.
    """

    config: SiteConfig
    collections: CollectionSource

    @property
    def site(self) -> str:
        return self.config.site


@dataclass(frozen=True)
class RouteResponse:
    body: str
    content_type: str = "text/plain; charset=utf-8"
    status: int = 200


@dataclass
class FeedItem:
    """One entry of the RSS feed.

    Attributes:
        title: Entry title.
        link: Site-relative link, e.g. ``/badware/blog/hello-world/``.
        description: Short summary.
        pub_date: Publication date, if the entry has one.
        extra: Remaining frontmatter fields.
    """

    title: str
    link: str
    description: str = ""
    pub_date: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def categories(self) -> list[str]:
        tags = self.extra.get("tags") or self.extra.get("categories") or []
        if isinstance(tags, str):
            return [tags]
        return [str(tag) for tag in tags]


def feed_items(entries: Iterable[ContentEntry], base: str) -> list[FeedItem]:
    """Map blog entries to feed items linked at ``<base>blog/<id>/``.

    Args:
        entries: Entries of the blog collection.
        base: Base path the site is served under.

    Returns:
        Feed items in the same order as ``entries``.
    """
    prefix = normalize_base(base)
    items = []
    for entry in entries:
        data = dict(entry.data)
        title = data.pop("title", None) or entry.id
        description = data.pop("description", None) or ""
        pub_date = to_datetime(data.pop("pubDate", None))
        items.append(
            FeedItem(
                title=str(title),
                link=f"{prefix}blog/{entry.id}/",
                description=str(description),
                pub_date=pub_date,
                extra=data,
            )
        )
    return items


class RSSFeed:
    """RSS 2.0 document for a list of feed items.

    Items with a publication date are listed newest first, followed by
    undated items in their original order. Links are made absolute against
    ``site`` when it is set.
    """

    def __init__(
        self,
        title: str,
        description: str,
        site: str,
        items: Iterable[FeedItem],
        link: str = "/",
    ):
        self.title = title
        self.description = description
        self.site = site
        self.link = link
        self.items = list(items)

    def sorted_items(self) -> list[FeedItem]:
        dated = [item for item in self.items if item.pub_date is not None]
        undated = [item for item in self.items if item.pub_date is None]
        dated.sort(key=lambda item: item.pub_date, reverse=True)
        return dated + undated

    def render(self, now: datetime | None = None) -> str:
        """Serialize the feed.

        Args:
            now: Timestamp used for ``lastBuildDate`` (defaults to now, UTC).
        """
        build_date = format_rfc822(now or datetime.now(timezone.utc))
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape_xml(self.title)}</title>",
            f"<description>{escape_xml(self.description)}</description>",
            f"<link>{escape_xml(join_root_url(self.site, self.link))}</link>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(self._render_item(item) for item in self.sorted_items())
        rss.append("</channel></rss>")
        return "\n".join(rss)

    def _render_item(self, item: FeedItem) -> str:
        link = escape_xml(join_root_url(self.site, item.link))
        parts = [
            f"<title>{escape_xml(item.title)}</title>",
            f"<link>{link}</link>",
            f'<guid isPermaLink="true">{link}</guid>',
        ]
        if item.description:
            parts.append(f"<description>{escape_xml(item.description)}</description>")
        if item.pub_date is not None:
            parts.append(f"<pubDate>{format_rfc822(item.pub_date)}</pubDate>")
        author = item.extra.get("author")
        if author:
            parts.append(f"<author>{escape_xml(str(author))}</author>")
        parts.extend(f"<category>{escape_xml(tag)}</category>" for tag in item.categories)
        return f"<item>{''.join(parts)}</item>"


def get_rss(context: RouteContext) -> RouteResponse:
    """GET handler for the RSS feed of the blog collection."""
    config = context.config
    posts = context.collections.get_collection(BLOG_COLLECTION)
    feed = RSSFeed(
        title=config.title,
        description=config.description,
        site=context.site,
        items=feed_items(posts, config.base),
        link=config.base,
    )
    return RouteResponse(
        body=feed.render(),
        content_type="application/rss+xml; charset=utf-8",
    )


class Route(ABC):
    """Abstract base class for routes served at a fixed filename under the base path."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the path of this route relative to the base path, e.g. 'rss.xml'."""
        ...

    @abstractmethod
    def get(self, context: RouteContext) -> RouteResponse:
        """Handle a GET request for this route."""
        ...

    def write(self, output_dir: Path, context: RouteContext) -> Path:
        """Render the route and write it into the output directory.

        Returns:
            Path of the written file.
        """
        response = self.get(context)
        output_path = output_dir / self.filename
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(response.body, encoding="utf-8")
        return output_path


class RSSRoute(Route):
    @property
    def filename(self) -> str:
        return "rss.xml"

    def get(self, context: RouteContext) -> RouteResponse:
        return get_rss(context)


class RouteRegistry:
    """Registry for managing routes.

    Attributes:
        _routes: Registered routes keyed by filename.
    """

    def __init__(self) -> None:
        self._routes: dict[str, Route] = {}

    def register(self, route: Route) -> None:
        self._routes[route.filename] = route

    def match(self, relative_path: str) -> Route | None:
        """Return the route serving ``relative_path`` (relative to the base path)."""
        return self._routes.get(relative_path.strip("/"))

    def __iter__(self):
        return iter(self._routes.values())

    def write_all(self, output_dir: Path, context: RouteContext) -> list[Path]:
        """Write every registered route into ``output_dir``."""
        return [route.write(output_dir, context) for route in self]


def create_default_route_registry() -> RouteRegistry:
    """Create a registry with the default routes.

    Returns:
        RouteRegistry configured with the RSS route.
    """
    registry = RouteRegistry()
    registry.register(RSSRoute())
    return registry
