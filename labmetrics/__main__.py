"""Allow ``python -m labmetrics``."""

from __future__ import annotations

from labmetrics.cli import main

raise SystemExit(main())
