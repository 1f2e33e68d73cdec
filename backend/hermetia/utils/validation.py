"""
Input Validation Utilities
===========================

Common validation functions for user data and alert thresholds.
"""

import re


# Allowed threshold windows (inclusive)
TEMPERATURE_RANGE = (25.0, 35.0)
HUMIDITY_RANGE = (60.0, 80.0)

_NAME_PATTERN = re.compile(r"^[A-Za-zÁÉÍÓÚáéíóúÑñÜü\s]+$")
_PHONE_PATTERN = re.compile(r"^\d{10}$")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_person_name(name: str) -> bool:
    """
    Validate a first name or surname (letters and spaces only).

    Args:
        name: Name string (e.g., "María José")

    Returns:
        True if valid, False otherwise
    """
    return bool(name) and bool(_NAME_PATTERN.match(name))


def validate_phone(phone: str) -> bool:
    """
    Validate a phone number (exactly 10 digits).

    Args:
        phone: Phone number string (e.g., "5512345678")

    Returns:
        True if valid, False otherwise
    """
    return bool(phone) and bool(_PHONE_PATTERN.match(phone))


def validate_email(email: str) -> bool:
    """
    Validate an e-mail address (something@domain.tld).

    Args:
        email: E-mail string

    Returns:
        True if valid, False otherwise
    """
    return bool(email) and bool(_EMAIL_PATTERN.match(email))


def validate_thresholds(
    temp_min: float,
    temp_max: float,
    humidity_min: float,
    humidity_max: float,
) -> list[str]:
    """
    Check an alert threshold configuration.

    Every rule is checked so the dashboard can show all problems at once.

    Returns:
        List of error messages (empty when the configuration is valid)
    """
    errors = []
    low, high = TEMPERATURE_RANGE
    if not low <= temp_min <= high:
        errors.append(f"Minimum temperature must be between {low:g}°C and {high:g}°C")
    if not low <= temp_max <= high:
        errors.append(f"Maximum temperature must be between {low:g}°C and {high:g}°C")
    if temp_min >= temp_max:
        errors.append("Minimum temperature must be lower than the maximum")

    low, high = HUMIDITY_RANGE
    if not low <= humidity_min <= high:
        errors.append(f"Minimum humidity must be between {low:g}% and {high:g}%")
    if not low <= humidity_max <= high:
        errors.append(f"Maximum humidity must be between {low:g}% and {high:g}%")
    if humidity_min >= humidity_max:
        errors.append("Minimum humidity must be lower than the maximum")

    return errors
