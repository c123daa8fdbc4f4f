"""Marketplace domain API package."""

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import order_router, product_router

__all__ = ["product_router", "order_router", "register_error_handlers"]
