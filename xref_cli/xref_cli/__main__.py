"""Entry point for `python -m xref_cli` and `xref` console script."""

from __future__ import annotations

from xref_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
