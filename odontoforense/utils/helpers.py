"""
Helper functions
"""
import re
import uuid
import random
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

NOT_AVAILABLE = "N/A"


def utcnow() -> datetime:
    """Naive UTC timestamp used for created_at columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id() -> str:
    """
    Generate an opaque record id

    Returns:
        32 character hex string
    """
    return uuid.uuid4().hex


def generate_nic() -> str:
    """
    Generate an 8 digit victim identifier candidate

    Returns:
        Numeric string between 10000000 and 99999999
    """
    return str(random.randint(10_000_000, 99_999_999))


def unix_millis(moment: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch (now when no moment is given)"""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def format_datetime(value: Optional[datetime], format_string: str = "%d/%m/%Y %H:%M:%S") -> str:
    """
    Format a datetime for documents

    Args:
        value: datetime or None
        format_string: strftime pattern

    Returns:
        Formatted string, or N/A when value is None
    """
    if value is None:
        return NOT_AVAILABLE
    return value.strftime(format_string)


def or_na(value: Any) -> str:
    """Render a value as text, substituting N/A for None or blank strings"""
    if value is None:
        return NOT_AVAILABLE
    text = str(value).strip()
    return text if text else NOT_AVAILABLE


def format_coordinates(coordinates: Optional[Sequence[float]]) -> str:
    """Render a [longitude, latitude] pair as "[lon, lat]" or N/A"""
    if not coordinates:
        return NOT_AVAILABLE
    return "[" + ", ".join(str(c) for c in coordinates) + "]"


def validate_cpf(cpf: str) -> bool:
    """
    Validate a Brazilian CPF using its two check digits

    Args:
        cpf: CPF with or without punctuation

    Returns:
        True when the CPF is valid
    """
    digits = re.sub(r'\D', '', cpf or '')

    if len(digits) != 11:
        return False

    # Repeated digits pass the checksum but are not issued
    if digits == digits[0] * 11:
        return False

    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        remainder = total % 11
        check_digit = 0 if remainder < 2 else 11 - remainder
        if check_digit != int(digits[position]):
            return False

    return True


def mask_personal_info(text: str, mask_char: str = "*") -> str:
    """
    Mask personal data before it reaches the logs

    Args:
        text: original text
        mask_char: masking character

    Returns:
        Masked text
    """
    # CPF (123.456.789-09 -> 123.***.***-09)
    text = re.sub(r'(\d{3})\.?(\d{3})\.?(\d{3})-?(\d{2})', r'\1.' + mask_char * 3 + '.' + mask_char * 3 + r'-\4', text)

    # E-mail (user@example.com -> u***@example.com)
    text = re.sub(r'(\w{1,3})([\w.]*)(@[\w-]+\.[\w.]+)', r'\1' + mask_char * 3 + r'\3', text)

    return text
