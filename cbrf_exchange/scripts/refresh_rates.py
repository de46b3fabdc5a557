"""CLI entry point for refreshing the cached rates."""

from __future__ import annotations

import sys

from cbrf_exchange.tasks.refresh_job import main

if __name__ == "__main__":  # pragma: no cover - thin wrapper
    sys.exit(main())
