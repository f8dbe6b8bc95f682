import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

PHONE_REGEX = re.compile(r"^\+?\d{7,15}$")  # E.164-ish: +[country][number], up to 15 digits
STUDENT_ID_REGEX = re.compile(r"^\d{6}$")


def validate_phone_number(value: str | None) -> None:
    """Validate phone number.

    Args:
        value (str): phone number.
    """
    if not value:
        return None
    if not isinstance(value, str):
        raise ValidationError(_("Phone number must be a string."))

    if not PHONE_REGEX.fullmatch(normalize_phone_number(value)):
        raise ValidationError(_("Number format is incorrect."))
    return None


def normalize_phone_number(value: str) -> str:
    """Strip spaces, dashes and parentheses from a phone number."""
    return re.sub(r"[ \-()]", "", value)


def validate_student_id(value: str | None) -> None:
    """Student IDs are exactly six digits."""
    if value and not STUDENT_ID_REGEX.fullmatch(value):
        raise ValidationError(_("Student ID must be exactly 6 digits."))
