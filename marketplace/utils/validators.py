"""
Validation utilities for the Rental Marketplace API.
Converts boundary values (hex ids, price bounds, emails) into store-ready values.
"""

import math
from typing import Any, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from email_validator import validate_email, EmailNotValidError

from marketplace.utils.exceptions import ValidationError


class ValidationUtils:
    """
    Utility class for common validation operations.
    Provides reusable validation methods for boundary values.
    """

    @staticmethod
    def parse_object_id(value: Any, field_name: str = "ID") -> ObjectId:
        """
        Parse a hex string into an ObjectId.

        Args:
            value: Value to parse
            field_name: Name of the field for error messages

        Returns:
            ObjectId instance

        Raises:
            ValidationError: If the value is missing or not a valid ObjectId
        """
        if isinstance(value, ObjectId):
            return value

        if not value:
            raise ValidationError(f"{field_name} is required")

        try:
            return ObjectId(str(value).strip())
        except (InvalidId, TypeError):
            raise ValidationError(f"Invalid {field_name}")

    @staticmethod
    def parse_price_bound(value: Any) -> Optional[float]:
        """
        Parse an optional price bound.
        Unparsable or non-finite input yields None so the bound is ignored.
        """
        if value is None or value == "":
            return None

        try:
            bound = float(value)
        except (TypeError, ValueError):
            return None

        if not math.isfinite(bound):
            return None
        return bound

    @staticmethod
    def validate_email_address(email: Any, field_name: str = "Email") -> str:
        """
        Validate and normalize an email address.

        Args:
            email: Email to validate
            field_name: Name of the field for error messages

        Returns:
            Normalized, lowercased email string

        Raises:
            ValidationError: If email is missing or invalid
        """
        if not email or not str(email).strip():
            raise ValidationError(f"{field_name} is required")

        email_str = str(email).strip().lower()

        try:
            valid_email = validate_email(email_str, check_deliverability=False)
            return valid_email.normalized
        except EmailNotValidError as e:
            raise ValidationError(f"Invalid email format: {str(e)}")


def to_object_ids(values: Iterable[Any]) -> List[ObjectId]:
    """Convert stored or boundary ids to ObjectIds, skipping anything unparsable."""
    ids = []
    for value in values or []:
        if isinstance(value, ObjectId):
            ids.append(value)
        elif ObjectId.is_valid(value):
            ids.append(ObjectId(value))
    return ids


def to_hex_ids(values: Iterable[Any]) -> List[str]:
    """Convert ObjectIds to their hex representation."""
    return [str(value) for value in values or []]
