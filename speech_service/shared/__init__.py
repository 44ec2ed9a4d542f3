"""
Shared Components

Exceptions and helpers used across the API and speech domain.
"""

from . import exceptions

__all__ = ['exceptions']
