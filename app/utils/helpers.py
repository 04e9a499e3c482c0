"""
Helper utility functions shared by the route handlers.
"""

from flask import current_app, request

from services.billing_repository import BillingRepository
from validators import ValidationError


def get_json_body():
    """
    Parse the request body as a JSON object.

    Returns:
        The decoded dict ({} for an empty body)

    Raises:
        ValidationError: If the body is not a JSON object
    """
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ValidationError('Request body must be valid JSON')
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def pagination_args():
    """Read page and limit from the query string; the repositories clamp them."""
    return {
        'page': request.args.get('page', 1),
        'limit': request.args.get('limit', 25)
    }


def billing_repository(session):
    """BillingRepository carrying the configured default tax rates."""
    config = current_app.config
    return BillingRepository(
        session,
        tax_rate=config.get('INVOICE_TAX_RATE', 0.1),
        cgst_rate=config.get('ESTIMATION_CGST_RATE', 0.09),
        sgst_rate=config.get('ESTIMATION_SGST_RATE', 0.09)
    )
