"""Allow `python -m dashboard`."""

from .main import run

run()
