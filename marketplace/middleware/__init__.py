"""
Middleware package for the Rental Marketplace API.
Provides request validation and performance monitoring.
"""

from .validation import ValidationMiddleware
from .performance import PerformanceMonitoringMiddleware

__all__ = [
    "ValidationMiddleware",
    "PerformanceMonitoringMiddleware"
]
