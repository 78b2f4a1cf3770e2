"""
API route handlers for the marketing dashboard.

Routers:
    - ga4: Live GA4 dashboard payload and static demo payload
"""

from marketing_dashboard.api.ga4 import router as ga4_router

__all__ = ['ga4_router']
