"""
Formatting utilities for the follow dashboard
Money is held in yen everywhere in the core; conversion to the display
unit happens only here.
"""
import pandas as pd
from datetime import datetime, date
from typing import Union, Optional
import logging

from .kpi_follow.constants import DISPLAY_UNIT, DISPLAY_UNIT_LABEL

logger = logging.getLogger(__name__)


def _is_missing(value) -> bool:
    return value is None or pd.isna(value)


def to_display_unit(value: Union[int, float, None],
                    display_unit: float = DISPLAY_UNIT) -> Optional[float]:
    """
    Convert an internal yen amount to the display unit

    Args:
        value: Amount in yen
        display_unit: Yen per display unit (1e8 for 億円)

    Returns:
        Amount in display units, None when value is missing
    """
    if _is_missing(value):
        return None
    return float(value) / display_unit


def format_amount(value: Union[int, float, None],
                  decimals: int = 1,
                  display_unit: float = DISPLAY_UNIT,
                  unit_label: str = DISPLAY_UNIT_LABEL) -> str:
    """
    Format a yen amount in display units, e.g. 12.3億円
    """
    try:
        converted = to_display_unit(value, display_unit)
        if converted is None:
            return "-"
        return f"{converted:,.{decimals}f}{unit_label}"
    except (ValueError, TypeError):
        return "-"


def format_number(value: Union[int, float, None], decimals: int = 0) -> str:
    """
    Format number with thousand separator

    Args:
        value: Number to format
        decimals: Number of decimal places

    Returns:
        Formatted string
    """
    try:
        if _is_missing(value):
            return "-"

        if decimals == 0:
            return f"{int(round(value)):,}"
        else:
            return f"{float(value):,.{decimals}f}"

    except (ValueError, TypeError):
        return "-"


def format_rate(value: Union[int, float, None], decimals: int = 1, signed: bool = True) -> str:
    """
    Format a variance / achievement rate in percent

    Args:
        value: Rate in percentage points
        decimals: Number of decimal places
        signed: Prefix positive values with '+'

    Returns:
        Formatted rate string, '-' for a missing rate
    """
    try:
        if _is_missing(value):
            return "-"
        if signed:
            return f"{float(value):+.{decimals}f}%"
        return f"{float(value):.{decimals}f}%"

    except (ValueError, TypeError):
        return "-"


def format_date(value: Union[str, datetime, date, None],
                format_str: str = "%Y/%m/%d") -> str:
    """
    Format date consistently

    Args:
        value: Date value to format
        format_str: Output format string

    Returns:
        Formatted date string
    """
    try:
        if _is_missing(value):
            return "-"

        if isinstance(value, str):
            if value.strip() == "":
                return "-"
            for fmt in ["%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"]:
                try:
                    dt = datetime.strptime(value.split('.')[0], fmt)
                    return dt.strftime(format_str)
                except ValueError:
                    continue
            try:
                return pd.to_datetime(value).strftime(format_str)
            except (ValueError, TypeError):
                return value

        elif isinstance(value, (datetime, date)):
            return value.strftime(format_str)

        else:
            return str(value)

    except Exception as e:
        logger.debug(f"Error formatting date {value}: {e}")
        return "-"


def format_relative_time(value: Union[datetime, None], now: Optional[datetime] = None) -> str:
    """
    Relative time label for comments and notifications

    Args:
        value: Event timestamp
        now: Reference time (defaults to datetime.now())

    Returns:
        'just now', '5m ago', '3h ago', '2d ago', or a date beyond a week
    """
    if value is None:
        return "-"
    now = now or datetime.now()
    seconds = (now - value).total_seconds()

    if seconds < 60:
        return "just now"
    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return format_date(value, "%m/%d")
