"""Entry point for the Badware CLI.

The launcher spawns the dev server through ``python -m badware serve``, so this
module has to stay importable without side effects.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
