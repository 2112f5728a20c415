"""Badware blog tooling.

This package holds the tooling behind the Badware static blog: the site
configuration, the blog content collection, the RSS feed route, a small
development server and the ``dev-solo`` routine that pins that dev server to
a single fixed port.

The main entry point is the CLI module, which provides commands for building
the site, running the dev server, and running it as a single instance.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
