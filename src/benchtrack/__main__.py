"""Allow `python -m benchtrack`."""

from .cli import cli_main

cli_main()
