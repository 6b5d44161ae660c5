import re
from datetime import datetime, timedelta
from typing import Optional

from errors import InvalidExpirationFormat

NEVER = "never"

_EXPR = re.compile(r"([0-9]+)([mhdwMy])")


def _add_date(dt: datetime, years=0, months=0, days=0) -> datetime:
    # Month first, then let an overflowing day roll into the next month
    # (Jan 31 + 1 month -> Mar 3), same as a normalising calendar add.
    month_index = dt.month - 1 + months
    year = dt.year + years + month_index // 12
    month = month_index % 12 + 1
    first = dt.replace(year=year, month=month, day=1)
    return first + timedelta(days=dt.day - 1 + days)


def compute_expiration(expr: str, created: datetime) -> Optional[datetime]:
    """Turn a duration expression like "10m" or "2M" into an absolute instant.

    Returns None for "never". Units: m minutes, h hours, d days, w weeks,
    M calendar months, y calendar years.
    """
    if expr == NEVER:
        return None
    m = _EXPR.fullmatch(expr or "")
    if not m:
        raise InvalidExpirationFormat(expr)
    amount = int(m.group(1))
    if amount == 0:
        raise InvalidExpirationFormat(expr)
    unit = m.group(2)
    try:
        if unit == "m":
            return created + timedelta(minutes=amount)
        if unit == "h":
            return created + timedelta(hours=amount)
        if unit == "d":
            return _add_date(created, days=amount)
        if unit == "w":
            return _add_date(created, days=amount * 7)
        if unit == "M":
            return _add_date(created, months=amount)
        return _add_date(created, years=amount)
    except (OverflowError, ValueError):
        raise InvalidExpirationFormat(expr) from None
