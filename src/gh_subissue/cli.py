"""Console script entrypoint.

The dispatcher itself lives in `gh_subissue.main`.
"""

from __future__ import annotations

from gh_subissue.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
