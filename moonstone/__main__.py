"""Allow `python -m moonstone`."""

from moonstone.cli.main import app

app()
