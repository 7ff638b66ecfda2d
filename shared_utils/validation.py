"""
Input validation and sanitization utilities.
Provides helpers for validating request payloads before any upstream call.
"""

from datetime import date
from typing import Any, Optional

from shared_utils.error_handler import ValidationError


class InputValidator:
    """Utility class for input validation."""

    @staticmethod
    def validate_non_empty_string(value: Any, field_name: str) -> str:
        """Validate non-empty string.

        Args:
            value: String to validate
            field_name: Name of field for error messages

        Returns:
            Validated (stripped) string

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            raise ValidationError(f"{field_name} is required")

        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string")

        if not value.strip():
            raise ValidationError(f"{field_name} cannot be empty")

        return value.strip()

    @staticmethod
    def validate_positive_int(value: Any, field_name: str, allow_zero: bool = False) -> int:
        """Validate positive integer.

        Args:
            value: Integer to validate
            field_name: Name of field for error messages
            allow_zero: Whether zero is valid

        Returns:
            Validated integer

        Raises:
            ValidationError: If validation fails
        """
        # bool is a subclass of int; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{field_name} must be an integer")

        min_val = 0 if allow_zero else 1
        if value < min_val:
            raise ValidationError(f"{field_name} must be >= {min_val}")

        return value

    @staticmethod
    def validate_optional_iso_date(value: Any, field_name: str) -> Optional[str]:
        """Validate an optional ISO 8601 date (``YYYY-MM-DD``, time part allowed).

        Returns:
            The original string, or None when the value is empty.

        Raises:
            ValidationError: If the value is not a parseable date
        """
        if value is None or value == "":
            return None

        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be an ISO date string")

        try:
            date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValidationError(
                f"{field_name} must be an ISO date (YYYY-MM-DD)",
                context={field_name: value},
            )

        return value.strip()

    @staticmethod
    def validate_bool(value: Any, field_name: str) -> bool:
        """Validate a JSON boolean."""
        if not isinstance(value, bool):
            raise ValidationError(f"{field_name} must be a boolean")
        return value
