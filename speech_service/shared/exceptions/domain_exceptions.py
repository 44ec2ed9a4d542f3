"""
Domain Exception Classes

Exception hierarchy for errors raised by the speech service.
Every exception carries a machine-readable error code and the HTTP status
the API layer should answer with.
"""
from typing import Dict, Any, Optional


class DomainException(Exception):
    """
    Base exception for all domain-related errors.

    Provides structured error information with context and metadata.
    """

    status_code = 500
    default_error_code = "domain_error"

    def __init__(
        self,
        message: str,
        error_code: str = None,
        context: Dict[str, Any] = None,
        cause: Exception = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context
        }

        if self.cause:
            result["caused_by"] = str(self.cause)

        return result


class ConfigurationError(DomainException):
    """
    Exception for configuration-related errors.

    Raised at startup when a configuration file or value is invalid.
    """

    default_error_code = "configuration_error"

    def __init__(self, message: str, config_file: str = None, field: str = None, **kwargs):
        super().__init__(message, **kwargs)
        if config_file:
            self.context["config_file"] = config_file
        if field:
            self.context["field"] = field


class ValidationError(DomainException):
    """
    Exception for request validation errors.

    Used when input data doesn't meet domain requirements.
    """

    status_code = 400
    default_error_code = "validation_error"

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        if field:
            self.context["field"] = field
        if value is not None:
            self.context["value"] = str(value)


class NoAudioProvidedError(ValidationError):
    """400 Bad Request - the multipart body carried no audio file part"""

    default_error_code = "no_audio_provided"

    def __init__(self, message: str = "No audio file provided", **kwargs):
        super().__init__(message, field="audio", **kwargs)


class UploadStorageError(DomainException):
    """Writing the uploaded audio to disk failed."""

    default_error_code = "upload_storage_failure"

    def __init__(self, message: str, temp_file_path: str = None, **kwargs):
        super().__init__(message, **kwargs)
        if temp_file_path:
            self.context["temp_file_path"] = temp_file_path


class TranscodeFailure(DomainException):
    """
    Exception for failures of the external transcoding process.

    Covers a binary that could not be launched at all as well as a process
    that ran and exited with a nonzero status.
    """

    default_error_code = "transcode_failure"

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stderr_tail: str = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.exit_code = exit_code
        if exit_code is not None:
            self.context["exit_code"] = exit_code
        if stderr_tail:
            self.context["stderr_tail"] = stderr_tail


class TranscodeTimeout(TranscodeFailure):
    """The transcoding process exceeded its deadline and was killed."""

    default_error_code = "transcoder_timeout"

    def __init__(self, message: str, timeout_seconds: float = None, **kwargs):
        super().__init__(message, **kwargs)
        if timeout_seconds is not None:
            self.context["timeout_seconds"] = timeout_seconds


class RecognitionFailure(DomainException):
    """
    Exception for errors while reading or decoding the converted audio.

    Raised when reading the converted file, feeding chunks or finalizing the
    recognizer throws.
    """

    default_error_code = "recognition_failure"

    def __init__(self, message: str, chunks_fed: int = None, **kwargs):
        super().__init__(message, **kwargs)
        if chunks_fed is not None:
            self.context["chunks_fed"] = chunks_fed


class ModelLoadFailure(DomainException):
    """
    Exception for a speech model that is missing or cannot be loaded.

    Only raised during startup; the process must not start serving.
    """

    default_error_code = "model_load_failure"

    def __init__(self, message: str, model_path: str = None, **kwargs):
        super().__init__(message, **kwargs)
        if model_path:
            self.context["model_path"] = model_path
