from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

import pandas as pd

from .bonds import BondSpecification, GracePeriodEntry
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# stored column -> (specification field, default when the column is empty)
_COLUMNS = {
    "comercial_value": ("commercial_value", None),
    "interest_rate": ("interest_rate", None),
    "interest_rate_type": ("interest_rate_type", None),
    "payment_frequency": ("payment_frequency", None),
    "years": ("tenor_years", None),
    "emission_date": ("emission_date", None),
    "amortization_method": ("amortization_method", "german"),
    "compounding_frequency": ("compounding_frequency", None),
    "days_per_year": ("days_per_year", 360),
    "nominal_value": ("nominal_value", None),
    "currency": ("currency", "USD"),
    "bond_name": ("bond_name", "Bond"),
    "prima": ("premium", 0),
    "structuration": ("structuring", 0),
    "colocation": ("placement", 0),
    "flotation": ("flotation", 0),
    "cavali": ("settlement", 0),
    "structuration_apply_to": ("structuring_actor", "emitter"),
    "colocation_apply_to": ("placement_actor", "emitter"),
    "flotation_apply_to": ("flotation_actor", "both"),
    "cavali_apply_to": ("settlement_actor", "both"),
    "apply_prima_in": ("premium_timing", "end"),
    "cok": ("cok", 0),
    "income_tax": ("income_tax", 0),
}

_REQUIRED = ("comercial_value", "interest_rate", "interest_rate_type", "payment_frequency", "years", "emission_date")
_OPTIONAL_NONE = ("compounding_frequency", "nominal_value")


def _missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"grace row: {name} must be an integer, got {value!r}") from None


def grace_periods_from_rows(rows: Union[pd.DataFrame, Iterable[Mapping[str, Any]], None]) -> List[GracePeriodEntry]:
    """Grace rows (period, type, duration) as stored alongside a bond."""
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        rows = rows.to_dict("records")

    out: List[GracePeriodEntry] = []
    for r in rows:
        if _missing(r.get("period")):
            raise ConfigurationError(f"grace row without a period: {dict(r)!r}")
        gtype = r.get("type")
        duration = r.get("duration")
        out.append(
            GracePeriodEntry(
                period=_as_int(r["period"], "period"),
                type="none" if _missing(gtype) else gtype,
                duration=None if _missing(duration) else _as_int(duration, "duration"),
            )
        )
    return out


def specification_from_record(
    record: Mapping[str, Any],
    grace_rows: Union[pd.DataFrame, Iterable[Mapping[str, Any]], None] = None,
) -> BondSpecification:
    """
    Map a stored bond row (and its grace rows) to a BondSpecification.

    Missing optional columns take the stored-form defaults; unknown category
    values raise ConfigurationError instead of falling back silently.
    """
    absent = [c for c in _REQUIRED if _missing(record.get(c))]
    if absent:
        raise ConfigurationError(f"bond record is missing required field(s): {', '.join(absent)}")

    kwargs = {}
    for column, (name, default) in _COLUMNS.items():
        value = record.get(column)
        if _missing(value):
            if default is None and column in _OPTIONAL_NONE:
                value = None
            else:
                logger.debug("bond record: %s missing, using %r", column, default)
                value = default
        kwargs[name] = value

    if grace_rows is None:
        grace_rows = record.get("bond_grace_period")
    kwargs["grace_periods"] = tuple(grace_periods_from_rows(grace_rows))

    return BondSpecification(**kwargs)

