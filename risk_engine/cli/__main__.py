"""Entry point for `python -m risk_engine.cli` and the `risk-engine` console script."""

from __future__ import annotations

from risk_engine.cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
