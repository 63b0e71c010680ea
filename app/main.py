"""Console entry point for scribeline."""

from __future__ import annotations


def main() -> None:
    """Run the scribeline CLI (``scribeline run FILE``, ``scribeline menu``)."""

    from .cli import create_cli_app

    create_cli_app()(prog_name="scribeline")


if __name__ == "__main__":
    main()
