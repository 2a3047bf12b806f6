"""Order workflow service and HTTP endpoints."""

from .service import OrderMutationService

__all__ = ["OrderMutationService"]
