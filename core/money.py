"""
Monetary values: two decimal places, rounded half-up.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import BeforeValidator, Field, PlainSerializer

TWO_PLACES = Decimal("0.01")


def normalize_price(value: Decimal | float | int | str | None) -> Decimal | None:
    """Round a price to cents (19.995 -> 20.00, 19.994 -> 19.99). None passes through."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        # str() keeps the decimal literal the client sent instead of its binary approximation
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _float_as_text(value):
    if isinstance(value, float):
        return str(value)
    return value


# Request side: non-negative amount, floats parsed from their text form
MoneyIn = Annotated[Decimal, BeforeValidator(_float_as_text), Field(ge=0)]

# Response side: serialized as a JSON number
MoneyOut = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
