"""
Utility helpers for filesystem paths and amount parsing.

Centralizes project-root based path resolution so both the CLI and the
logging setup agree on where relative paths live, and keeps the decimal
helpers shared by the validator, ledger and planner in one place.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent


def get_project_root() -> Path:
    """Return the repository root directory."""
    return _PROJECT_ROOT


def _coerce_path(path_value: str | Path, *, allow_relative: bool = True) -> Path:
    """
    Convert a string/Path into an absolute project-root based Path.

    Args:
        path_value: Candidate filesystem path.
        allow_relative: If False, value must already be absolute.

    Returns:
        Absolute Path instance.
    """
    path = Path(path_value)
    if path.is_absolute() or not allow_relative:
        return path
    return get_project_root() / path


def resolve_log_path(log_path: str) -> Path:
    """
    Convert a log file path to an absolute path under the project root when needed.

    Args:
        log_path: Configured log file path (relative or absolute).

    Returns:
        Absolute Path for logging output.
    """
    resolved = _coerce_path(log_path)
    if resolved.parent != resolved:
        resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def to_decimal(value: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """
    Convert a value to Decimal, returning None when it is not a finite number.

    Floats go through ``str`` so 0.1 becomes Decimal('0.1'), not its binary
    expansion.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.debug("Unable to convert %r to Decimal", value)
        return None
    return result if result.is_finite() else None


def quantize_amount(amount: Decimal, unit: Decimal) -> Decimal:
    """
    Round an amount to the accounting unit using half-up rounding.

    Args:
        amount: Value to round.
        unit: Accounting unit, e.g. Decimal('1') or Decimal('0.01').

    Returns:
        Rounded Decimal expressed as a multiple of ``unit``.
    """
    steps = (amount / unit).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return steps * unit
