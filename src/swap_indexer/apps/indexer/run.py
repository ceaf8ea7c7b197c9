"""CLI entry point for the swap indexer app."""

from swap_indexer.apps.indexer.cli import app

__all__ = ["app", "main"]


def main() -> None:
    """Run the swap indexer CLI application."""
    app()


if __name__ == "__main__":
    main()
