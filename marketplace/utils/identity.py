"""
Caller identity verification.
Email is an unauthenticated identity claim; verification is a swappable capability so a
real authentication scheme can replace the default without touching services.
"""

from typing import Optional
import logging

from marketplace.utils.exceptions import ValidationError
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class IdentityVerifier:
    """Turns a claimed identity into a verified, normalized email."""

    async def verify(self, claimed_email: Optional[str]) -> str:
        """
        Verify a claimed email.

        Args:
            claimed_email: Email supplied by the caller

        Returns:
            Normalized email

        Raises:
            ValidationError: If the claim is missing or malformed
        """
        raise NotImplementedError


class EmailClaimVerifier(IdentityVerifier):
    """Trusts the claimed email after normalizing and validating its syntax."""

    async def verify(self, claimed_email: Optional[str]) -> str:
        if claimed_email is None or not str(claimed_email).strip():
            raise ValidationError("Email is required")
        return ValidationUtils.validate_email_address(claimed_email)


default_verifier = EmailClaimVerifier()
