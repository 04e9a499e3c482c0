"""
Line-item totals for invoices and estimations.

Monetary arithmetic is done in Decimal and every amount is rounded to cents
(ROUND_HALF_UP) before it is returned as a float for storage.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

CENT = Decimal('0.01')

DEFAULT_TAX_RATE = 0.1
DEFAULT_CGST_RATE = 0.09
DEFAULT_SGST_RATE = 0.09


def to_decimal(value: Any, default: Any = 0) -> Decimal:
    """Coerce value to Decimal; None, '' and non-numeric input give default."""
    if value is None or value == '' or isinstance(value, bool):
        return Decimal(str(default))
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal(str(default))
    if not result.is_finite():
        return Decimal(str(default))
    return result


def money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _number(value: Decimal):
    return int(value) if value == value.to_integral_value() else float(value)


def normalize_items(items: Optional[List[Dict]]) -> List[Dict]:
    """
    Fill in quantity/unitPrice defaults and compute each totalPrice.

    Quantity defaults to 1 and unit price to 0 when missing or non-numeric.
    """
    normalized = []
    for item in items or []:
        item = item or {}
        quantity = to_decimal(item.get('quantity'), default=1)
        unit_price = to_decimal(item.get('unitPrice'), default=0)
        normalized.append({
            'description': item.get('description') or '',
            'quantity': _number(quantity),
            'unitPrice': float(unit_price),
            'totalPrice': money(quantity * unit_price),
        })
    return normalized


def _subtotal(items: List[Dict]) -> Decimal:
    return sum((Decimal(str(item['totalPrice'])) for item in items), Decimal('0'))


def _rate(value: Any, default: float) -> Decimal:
    return to_decimal(value, default=default)


def calculate_invoice_totals(items: Optional[List[Dict]], tax_rate: Any = None,
                             discount: Any = None) -> Dict[str, Any]:
    """
    Invoice variant: a single tax rate.

    Returns:
        dict with items, subtotal, taxRate, taxAmount, discount, total
    """
    lines = normalize_items(items)
    subtotal = _subtotal(lines)
    rate = _rate(tax_rate, DEFAULT_TAX_RATE)
    discount_value = to_decimal(discount, default=0)
    tax_amount = (subtotal * rate).quantize(CENT, rounding=ROUND_HALF_UP)

    return {
        'items': lines,
        'subtotal': money(subtotal),
        'taxRate': float(rate),
        'taxAmount': money(tax_amount),
        'discount': money(discount_value),
        'total': money(subtotal + tax_amount - discount_value),
    }


def calculate_estimation_totals(items: Optional[List[Dict]], cgst_rate: Any = None,
                                sgst_rate: Any = None, discount: Any = None) -> Dict[str, Any]:
    """
    Estimation variant: independent CGST and SGST rates.

    Returns:
        dict with items, subtotal, cgstRate, sgstRate, cgstAmount, sgstAmount,
        discount, total
    """
    lines = normalize_items(items)
    subtotal = _subtotal(lines)
    cgst = _rate(cgst_rate, DEFAULT_CGST_RATE)
    sgst = _rate(sgst_rate, DEFAULT_SGST_RATE)
    discount_value = to_decimal(discount, default=0)
    cgst_amount = (subtotal * cgst).quantize(CENT, rounding=ROUND_HALF_UP)
    sgst_amount = (subtotal * sgst).quantize(CENT, rounding=ROUND_HALF_UP)

    return {
        'items': lines,
        'subtotal': money(subtotal),
        'cgstRate': float(cgst),
        'sgstRate': float(sgst),
        'cgstAmount': money(cgst_amount),
        'sgstAmount': money(sgst_amount),
        'discount': money(discount_value),
        'total': money(subtotal + cgst_amount + sgst_amount - discount_value),
    }
