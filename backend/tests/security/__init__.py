"""Security tests for the order portal

This package contains security-focused tests including:
- Organization boundary enforcement
- Forged and disabled identities
- Token tampering and expiry
"""
