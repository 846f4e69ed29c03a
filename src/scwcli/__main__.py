"""Allow ``python -m scwcli``."""

from scwcli.app import main

main()
