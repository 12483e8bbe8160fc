# app/utils/decimal_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Money value rounded to cents. Raises ValueError for anything non-numeric."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a monetary amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def grand_total_of(analysis: dict | None) -> Decimal:
    """`analysis.pricing.grand_total`, 0 when the document has no pricing."""
    if not analysis:
        return Decimal("0.00")
    pricing = analysis.get("pricing")
    if not isinstance(pricing, dict):
        return Decimal("0.00")
    grand_total = pricing.get("grand_total")
    # a blank total counts as missing
    if grand_total in (None, ""):
        return Decimal("0.00")
    return to_decimal(grand_total)
