"""
Multi-tenant marketplace backend: shop, seller and admin GraphQL APIs over a
shared catalog and order database, with platform and seller analytics.
"""

__version__ = "1.0.0"
