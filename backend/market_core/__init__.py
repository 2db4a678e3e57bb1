"""Core signal logic: models, indicators, checklist, market turns and order book analysis.

This package contains pure business logic with no I/O dependencies
(no network or storage access). Everything here is synchronous,
deterministic and safe to call from any task without locking.
"""
