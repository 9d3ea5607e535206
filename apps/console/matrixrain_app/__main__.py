from __future__ import annotations

import sys

try:
    from .cli import main as _cli_main
except ImportError:
    # Executed as a plain script (runpy, python path/to/__main__.py).
    from matrixrain_app.cli import main as _cli_main


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    # Bare `matrixrain` starts the animation with the saved defaults.
    return int(_cli_main(args or ["run"]))


if __name__ == "__main__":
    raise SystemExit(main())
