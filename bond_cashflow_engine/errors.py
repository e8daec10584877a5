from __future__ import annotations


class BondEngineError(Exception):
    """Base class for errors raised by the schedule engine."""


class ConfigurationError(BondEngineError, ValueError):
    """Invalid or incomplete bond configuration (rate type, frequencies, actors, values)."""


class ScheduleError(BondEngineError, ValueError):
    """The period grid or grace-period layout cannot produce a schedule."""


class ConvergenceWarning(RuntimeWarning):
    """IRR search fell back to the closed-form approximation."""
