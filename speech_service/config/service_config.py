#!/usr/bin/env python3
"""
Service Configuration Loader

Single source of truth for the speech service settings. Values come from
built-in defaults, then an optional JSON file, then environment variables.
Configuration is read once at startup and never reloaded.
"""
import json
import logging
import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from speech_service.path_resolver import path_resolver
from speech_service.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "service_config.json"
CONFIG_PATH_ENV = "SPEECH_SERVICE_CONFIG"

# environment variable -> (field name, parser)
ENV_OVERRIDES = {
    "MODEL_PATH": ("model_path", Path),
    "HOST": ("host", str),
    "PORT": ("port", int),
    "UPLOAD_DIR": ("upload_dir", Path),
    "CHUNK_SIZE": ("chunk_size", int),
    "FFMPEG_BINARY": ("ffmpeg_binary", str),
    "TRANSCODE_TIMEOUT_SECONDS": ("transcode_timeout_seconds", float),
    "VOSK_LOG_LEVEL": ("vosk_log_level", int),
    "CORS_ORIGINS": ("cors_origins", lambda value: [o.strip() for o in value.split(",") if o.strip()]),
    "LOG_LEVEL": ("log_level", str),
}


@dataclass(frozen=True)
class ServiceConfiguration:
    """Settings for the speech-to-text service"""
    model_path: Path = field(default_factory=path_resolver.default_model_path)
    host: str = "0.0.0.0"
    port: int = 5000
    upload_dir: Path = field(default_factory=path_resolver.default_upload_dir)
    chunk_size: int = 4000
    sample_rate: int = 16000
    ffmpeg_binary: str = "ffmpeg"
    transcode_timeout_seconds: Optional[float] = None
    vosk_log_level: int = 0
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and diagnostics"""
        return {
            "model_path": str(self.model_path),
            "host": self.host,
            "port": self.port,
            "upload_dir": str(self.upload_dir),
            "chunk_size": self.chunk_size,
            "sample_rate": self.sample_rate,
            "ffmpeg_binary": self.ffmpeg_binary,
            "transcode_timeout_seconds": self.transcode_timeout_seconds,
            "vosk_log_level": self.vosk_log_level,
            "cors_origins": list(self.cors_origins),
            "log_level": self.log_level
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServiceConfiguration':
        """Create configuration from dictionary, keeping defaults for missing keys"""
        defaults = cls()
        timeout = data.get("transcode_timeout_seconds", defaults.transcode_timeout_seconds)
        cors_origins = data.get("cors_origins", defaults.cors_origins)
        if not isinstance(cors_origins, list):
            raise TypeError("cors_origins must be a list of origins")
        return cls(
            model_path=Path(data.get("model_path", defaults.model_path)),
            host=data.get("host", defaults.host),
            port=int(data.get("port", defaults.port)),
            upload_dir=Path(data.get("upload_dir", defaults.upload_dir)),
            chunk_size=int(data.get("chunk_size", defaults.chunk_size)),
            sample_rate=int(data.get("sample_rate", defaults.sample_rate)),
            ffmpeg_binary=data.get("ffmpeg_binary", defaults.ffmpeg_binary),
            transcode_timeout_seconds=float(timeout) if timeout is not None else None,
            vosk_log_level=int(data.get("vosk_log_level", defaults.vosk_log_level)),
            cors_origins=[str(origin) for origin in cors_origins],
            log_level=data.get("log_level", defaults.log_level)
        )

    def validate(self) -> List[str]:
        """Return a list of validation errors (empty when valid)"""
        errors = []
        if self.chunk_size <= 0:
            errors.append("chunk_size must be positive")
        if self.sample_rate <= 0:
            errors.append("sample_rate must be positive")
        if not 0 < self.port < 65536:
            errors.append("port must be between 1 and 65535")
        if self.transcode_timeout_seconds is not None and not (
                math.isfinite(self.transcode_timeout_seconds) and self.transcode_timeout_seconds > 0):
            errors.append("transcode_timeout_seconds must be a positive finite number when set")
        if not self.ffmpeg_binary:
            errors.append("ffmpeg_binary must not be empty")
        return errors


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """Load configuration overrides from a JSON file"""
    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file: {e}", config_file=str(config_path), cause=e)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file: {e}", config_file=str(config_path), cause=e)

    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a JSON object", config_file=str(config_path))
    return data


def _apply_environment(config: ServiceConfiguration, environ: Mapping[str, str]) -> ServiceConfiguration:
    overrides = {}
    for env_name, (field_name, parser) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[field_name] = parser(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {env_name}: {raw!r}", field=field_name, cause=e
            )
    return replace(config, **overrides) if overrides else config


def load_service_configuration(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> ServiceConfiguration:
    """
    Build the service configuration.

    Args:
        config_path: Explicit JSON config file. When None, the path from
            SPEECH_SERVICE_CONFIG is used, then config/service_config.json
            if it exists.
        environ: Environment mapping (os.environ if None)

    Returns:
        Validated ServiceConfiguration

    Raises:
        ConfigurationError: If the file or any value is invalid
    """
    environ = os.environ if environ is None else environ
    config_path = config_path or environ.get(CONFIG_PATH_ENV)

    if config_path:
        resolved = Path(config_path)
        if not resolved.is_file():
            raise ConfigurationError("Config file not found", config_file=str(resolved))
    else:
        resolved = path_resolver.resolve_config(CONFIG_FILE_NAME, required=False)

    if resolved is not None:
        try:
            config = ServiceConfiguration.from_dict(_read_config_file(resolved))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid config value: {e}", config_file=str(resolved), cause=e)
        logger.info(f"Loaded service config from {resolved}")
    else:
        config = ServiceConfiguration()

    config = _apply_environment(config, environ)

    errors = config.validate()
    if errors:
        raise ConfigurationError(f"Invalid service configuration: {'; '.join(errors)}")

    return config
