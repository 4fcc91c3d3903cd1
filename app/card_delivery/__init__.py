"""
Card Delivery Module

Serves one personalized card per request and keeps the visitor's history in
an encrypted cookie.
"""

from .factory import create_card_delivery_module, create_content_store

__all__ = ["create_card_delivery_module", "create_content_store"]
