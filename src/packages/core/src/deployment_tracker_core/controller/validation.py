"""Deployment request validation."""
from typing import Any

from pydantic import BaseModel

from deployment_tracker_core.catalog import validate_selection
from deployment_tracker_core.util import ValidationError

MIN_ACCOUNTS = 5
MAX_ACCOUNTS = 25


class DeploymentRequest(BaseModel):
    """A submission that passed validation."""

    accounts: int
    region: str
    currency: str
    notice: str | None = None


def parse_amount(value: Any) -> int:
    """Parse an account amount from untrusted input."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("Please enter a valid account amount.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("Account amount must be a whole number.")
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError("Please enter a valid account amount.") from None


def validate_request(
    accounts: Any,
    region: str | None,
    currency: str | None,
    minimum: int = MIN_ACCOUNTS,
    maximum: int = MAX_ACCOUNTS,
) -> DeploymentRequest:
    """Validate a submission, clamping the amount into [minimum, maximum]."""
    country_code, currency_code = validate_selection(region, currency)
    amount = parse_amount(accounts)
    notice = None
    if amount < minimum:
        notice = f"Accounts must be at least {minimum}. Value set to {minimum}."
        amount = minimum
    elif amount > maximum:
        notice = f"Accounts cannot exceed {maximum}. Value set to {maximum}."
        amount = maximum
    return DeploymentRequest(
        accounts=amount, region=country_code, currency=currency_code, notice=notice
    )
