"""
Speech-to-text upload service.
"""

__version__ = "1.0.0"
