"""
Service Configuration

Startup settings for the speech service.
"""

from .service_config import ServiceConfiguration, load_service_configuration

__all__ = ['ServiceConfiguration', 'load_service_configuration']
