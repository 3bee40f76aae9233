__version__ = "0.1.0"


def main() -> None:
    """Entry point for the hwaware CLI."""
    from hwaware.ui.cli import cli

    cli()
