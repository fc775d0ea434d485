"""Allow `python -m tiergate`."""

from tiergate import main

main()
