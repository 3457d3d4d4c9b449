"""Allow ``python -m mcquery``."""

from mcquery.cli import main

main()
