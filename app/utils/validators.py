"""Custom validators"""

from bson import ObjectId
from bson.errors import InvalidId
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
import re


PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15


def validate_object_id(id_str: str) -> bool:
    """
    Validate if a string is a valid MongoDB ObjectId

    Args:
        id_str: String to validate

    Returns:
        True if valid ObjectId, False otherwise
    """
    try:
        ObjectId(id_str)
        return True
    except (InvalidId, TypeError):
        return False


def digits_only(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def is_plausible_phone(phone: Optional[str]) -> bool:
    """Brazilian phone with area code, optionally with country code"""
    return PHONE_MIN_DIGITS <= len(digits_only(phone)) <= PHONE_MAX_DIGITS


def parse_money(value: Union[str, float, int, None]) -> Optional[Decimal]:
    """
    Parse a money amount typed by a customer.

    Accepts "50", "50.5", "50,50" and "R$ 1.234,56". Returns None when the
    value is not a finite number.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        text = str(value)
    else:
        text = value.strip().replace("R$", "").replace(" ", "")
        if not text:
            return None
        if "," in text:
            text = text.replace(".", "").replace(",", ".")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    # NaN and Infinity parse but cannot be compared with a total
    if not amount.is_finite():
        return None
    return amount
