"""
Core infrastructure package for the marketing dashboard API.

Provides:
- Configuration management via pydantic-settings
- The exception hierarchy rendered by the API error handlers

FastAPI dependencies live in ``marketing_dashboard.core.dependencies`` and are
not re-exported here, since they import the service layer.
"""

from marketing_dashboard.core.config import Settings, get_settings
from marketing_dashboard.core.exceptions import (
    AuthError,
    ConfigurationError,
    DashboardError,
    ExpiredTokenError,
    InvalidWindowError,
    PipelineError,
    RemoteApiError,
    UpstreamTimeoutError,
)

__all__ = [
    'Settings',
    'get_settings',
    'AuthError',
    'ConfigurationError',
    'DashboardError',
    'ExpiredTokenError',
    'InvalidWindowError',
    'PipelineError',
    'RemoteApiError',
    'UpstreamTimeoutError',
]
