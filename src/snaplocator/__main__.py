from __future__ import annotations

import sys

from .cli import main


if __name__ == "__main__":
    if sys.version_info < (3, 11):
        raise SystemExit(
            "snaplocator requires Python 3.11+. "
            f"Current interpreter: {sys.executable} (Python {sys.version.split()[0]})"
        )
    raise SystemExit(main())
