"""Allow `python -m update_manager`."""

from update_manager.cli import main

raise SystemExit(main())
