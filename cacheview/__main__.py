"""Module entrypoint for ``python -m cacheview``.

All argument parsing and dispatch happen in ``cacheview.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
