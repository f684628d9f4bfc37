"""Allow ``python -m eventpath``."""

from eventpath.cli import main

main()
