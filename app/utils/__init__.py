"""
Utilities Package

Shared helper functions used by the route handlers.
"""

from app.utils.helpers import (
    get_json_body,
    pagination_args,
    billing_repository,
)

__all__ = [
    'get_json_body',
    'pagination_args',
    'billing_repository',
]
