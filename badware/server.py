"""Development server for Badware.

Serves the site the way it will be deployed, under its base path:
- Answers registered routes (``rss.xml``) fresh on every request so content
  edits show up without a rebuild.
- Serves ``public/`` files, with ``index.html`` for directories.
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- Answers a route whose content cannot be loaded with a 500 page naming the file.
- Binds exactly ``host:port`` in strict port mode; otherwise hops to the next
  free port.

Key classes:
- DevServer: Binds and runs the HTTP server.
- PortInUseError: Raised when the requested port is taken.
- _SiteHandler: HTTP request handler for routes and static files.
"""

from __future__ import annotations

import errno
import functools
import socket
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

import click

from .config import SiteConfig
from .content import ContentCollections, ContentError
from .feeds import RouteContext, RouteRegistry, create_default_route_registry
from .utils import escape_xml

# Ports tried (including the requested one) when strict port mode is off.
PORT_SEARCH_LIMIT = 10


class PortInUseError(Exception):
    """The dev server could not bind its port.

    Attributes:
        host: Requested bind address.
        port: Port that was already in use.
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        super().__init__(f"Port {port} is already in use on {host}")


class _IPv6HTTPServer(ThreadingHTTPServer):
    address_family = socket.AF_INET6


class _SiteHandler(SimpleHTTPRequestHandler):
    """HTTP request handler serving routes and static files under a base path.

    Attributes:
        base: Base path, slash-terminated.
        routes: Registry of dynamic routes.
        context: Context handed to route handlers.
    """

    base = "/"
    routes: RouteRegistry | None = None
    context: RouteContext | None = None

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - send_head never lists
        return self._serve_404()

    def send_head(self):
        request_path = unquote(urlsplit(self.path).path)
        if request_path == self.base.rstrip("/") or (
            request_path == "/" and self.base != "/"
        ):
            return self._redirect(self.base)
        if not request_path.startswith(self.base):
            return self._serve_404()
        relative = request_path[len(self.base) :]
        if ".." in Path(relative).parts:
            return self._serve_404()

        route = None
        if self.routes is not None and relative:
            route = self.routes.match(relative)
        if route is not None:
            try:
                response = route.get(self.context)
            except ContentError as exc:
                return self._serve_500(exc)
            return self._send_body(response.status, response.content_type, response.body)

        target = Path(self.directory) / relative
        if target.is_dir():
            if relative and not relative.endswith("/"):
                return self._redirect(request_path + "/")
            target = target / "index.html"
        if not target.is_file():
            return self._serve_404()
        self.path = quote("/" + target.relative_to(self.directory).as_posix())
        return super().send_head()

    def _redirect(self, location: str):
        self.send_response(302)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()
        return None

    def _send_body(self, status: int, content_type: str, body: str):
        encoded = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", content_type)
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(encoded)
        return None

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.is_file():
            content = error_page.read_text(encoding="utf-8")
            return self._send_body(404, "text/html; charset=utf-8", content)
        self.send_error(404, "File not found")
        return None

    def _serve_500(self, exc: ContentError):
        """Report a route failure with the offending file, like a failed build."""
        click.echo(click.style(f"Route failed: {exc}", fg="red"), err=True)
        content = (
            "<!doctype html><title>Build failed</title>"
            "<h1>Build failed</h1>"
            f"<p>File: <code>{escape_xml(str(exc.source_path))}</code></p>"
            f"<p>Error: {escape_xml(exc.message)}</p>"
        )
        return self._send_body(500, "text/html; charset=utf-8", content)


class DevServer:
    """Development server for the site.

    Attributes:
        config: Site configuration.
        host: Bind address.
        port: Requested port; updated to the bound port once bound.
        strict_port: Fail instead of trying another port when ``port`` is taken.
        include_drafts: Serve draft entries in routes.
    """

    def __init__(
        self,
        config: SiteConfig,
        host: str = "127.0.0.1",
        port: int | None = None,
        strict_port: bool = False,
        include_drafts: bool = False,
    ):
        self.config = config
        self.host = host
        self.port = config.port if port is None else port
        self.strict_port = strict_port
        self.include_drafts = include_drafts
        self.routes = create_default_route_registry()
        self._httpd: ThreadingHTTPServer | None = None

    def route_context(self) -> RouteContext:
        collections = ContentCollections.from_config(
            self.config, include_drafts=self.include_drafts
        )
        return RouteContext(config=self.config, collections=collections)

    def _handler(self):
        handler_cls = type(
            "_SiteHandlerForConfig",
            (_SiteHandler,),
            {
                "base": self.config.base,
                "routes": self.routes,
                "context": self.route_context(),
            },
        )
        return functools.partial(handler_cls, directory=str(self.config.public_dir))

    def bind(self) -> ThreadingHTTPServer:
        """Bind the HTTP server.

        Raises:
            PortInUseError: If the port is taken in strict mode, or no port in
                the search range is free otherwise.
        """
        server_cls = _IPv6HTTPServer if ":" in self.host else ThreadingHTTPServer
        handler = self._handler()
        attempts = 1 if self.strict_port or self.port == 0 else PORT_SEARCH_LIMIT
        last = min(self.port + attempts, 65536)
        for candidate in range(self.port, last):
            try:
                httpd = server_cls((self.host, candidate), handler)
            except OSError as exc:
                if exc.errno != errno.EADDRINUSE:
                    raise
                if self.strict_port:
                    raise PortInUseError(self.host, candidate) from exc
                click.echo(f"Port {candidate} is in use, trying another one...")
                continue
            self.port = httpd.server_address[1]
            self._httpd = httpd
            return httpd
        raise PortInUseError(self.host, self.port)

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}{self.config.base}"

    def start(self) -> None:  # pragma: no cover - integration path
        httpd = self._httpd or self.bind()
        click.echo(f"Serving {self.config.public_dir} at {self.url}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            click.echo("Stopping dev server.")
        finally:
            self.stop()

    def stop(self) -> None:
        if self._httpd is not None:
            self._httpd.server_close()
            self._httpd = None
