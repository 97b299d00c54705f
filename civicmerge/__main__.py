"""Allow ``python -m civicmerge``."""

from .cli.app import app

app()
