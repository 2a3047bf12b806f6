"""ColorGarb order portal backend.

Multi-tenant order management with an order workflow and authorization
engine at its core: organization-scoped access decisions, the 13-stage
manufacturing pipeline, and an append-only audit trail.
"""

__version__ = "0.1.0"
