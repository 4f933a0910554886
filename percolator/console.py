# Separated from logging.py to keep rich out of the request-serving import path
from rich.console import Console

CONSOLE = Console()
ERROR_CONSOLE = Console(stderr=True)
