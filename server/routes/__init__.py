"""HTTP route handlers."""

from hexsearch.utils.exceptions import ValidationError


def validated(result: tuple):
    """
    Unwrap a validator result.

    Raises:
        ValidationError: If the value is invalid
    """
    is_valid, value, error = result
    if not is_valid:
        raise ValidationError(error)
    return value
