"""
Shared Exceptions

Common exception classes used across the speech service.
"""

from .domain_exceptions import (
    DomainException, ConfigurationError, ValidationError, NoAudioProvidedError,
    UploadStorageError, TranscodeFailure, TranscodeTimeout, RecognitionFailure,
    ModelLoadFailure
)

__all__ = [
    'DomainException',
    'ConfigurationError',
    'ValidationError',
    'NoAudioProvidedError',
    'UploadStorageError',
    'TranscodeFailure',
    'TranscodeTimeout',
    'RecognitionFailure',
    'ModelLoadFailure'
]
