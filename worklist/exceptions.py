"""Exceptions raised by the worklist package."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Malformed settings, rules or stored records.

    The assignment engine logs and skips the offending item instead of
    aborting the whole run.
    """
