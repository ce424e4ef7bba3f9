"""Allow running smix as ``python -m smix``."""

from .cli.main import main

main()
