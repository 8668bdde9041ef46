"""Allow ``python -m archivist``."""

from archivist.cli import app

if __name__ == "__main__":
    app()
