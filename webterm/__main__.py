"""Entry point for running webterm as a module."""

from webterm.cli.commands import app

if __name__ == "__main__":
    app()
