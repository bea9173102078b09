"""Shared validation utilities"""

from datetime import date, datetime
from typing import Optional, Union

from dateutil.parser import isoparse


def validate_positive_id(value: Optional[int], field: str = "id") -> Optional[int]:
    """
    Validate a database identifier sent by the client.

    Raises:
        ValueError: If the identifier is zero or negative
    """
    if value is None:
        return value
    if value <= 0:
        raise ValueError(f"{field} deve ser um inteiro positivo")
    return value


def normalize_slot_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Normalize a booking timestamp to a naive local datetime.

    Slots are compared by exact equality, so timezone suffixes and
    fractional seconds are dropped instead of converted.

    Args:
        value: ISO string ("2024-05-10T14:00:00Z", "2024-05-10T14:00:00-03:00",
            "2024-05-10 14:00") or datetime

    Returns:
        Naive datetime without microseconds

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None, microsecond=0)

    if not isinstance(value, str) or not value.strip():
        raise ValueError("Data e hora são obrigatórias")

    try:
        parsed = isoparse(value.strip())
    except (ValueError, OverflowError):
        raise ValueError(f"Data e hora inválidas: {value}")
    return parsed.replace(tzinfo=None, microsecond=0)


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD query parameter"""
    try:
        return date.fromisoformat(value.strip())
    except (ValueError, AttributeError):
        raise ValueError(f"Data inválida (use YYYY-MM-DD): {value}")
