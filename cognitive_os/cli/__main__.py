"""Allow ``python -m cognitive_os.cli``."""

from cognitive_os.cli.main import main

main()
