#!/usr/bin/env python3
"""
Path Resolution Service
Centralized path resolution for configuration files, models and temp files
"""
import tempfile
import uuid
from pathlib import Path
from typing import Optional, List

DEFAULT_MODEL_NAME = "vosk-model-small-en-us-0.15"


class PathResolver:
    """Centralized path resolution for configuration and resource files"""

    def __init__(self, project_root: Optional[Path] = None, config_dir: str = "config", temp_dir: Optional[str] = None):
        """
        Initialize PathResolver with configurable paths

        Args:
            project_root: Root directory of the project (the directory holding
                the speech_service package if None)
            config_dir: Name of configuration directory (default: "config")
            temp_dir: Base temporary directory (system temp dir if None)
        """
        self.project_root = project_root or Path(__file__).resolve().parent.parent
        self.config_dir_name = config_dir
        self.temp_dir = Path(temp_dir or tempfile.gettempdir()) / "speech_service"

    def default_model_path(self) -> Path:
        """Model directory used when no MODEL_PATH is configured"""
        return self.project_root / "models" / DEFAULT_MODEL_NAME

    def default_upload_dir(self) -> Path:
        """Directory receiving raw uploads when no UPLOAD_DIR is configured"""
        return self.temp_dir / "uploads"

    def resolve_config(self, filename: str, required: bool = True) -> Optional[Path]:
        """
        Resolve configuration file path with multiple fallback locations

        Args:
            filename: Configuration file name (e.g., "service_config.json")
            required: If True, raise FileNotFoundError if file not found

        Returns:
            Path to configuration file, or None if not found and not required

        Raises:
            FileNotFoundError: If file not found and required=True
        """
        search_paths = self._get_config_search_paths(filename)

        for path in search_paths:
            if path.exists() and path.is_file():
                return path

        if required:
            search_locations = "\n".join(f"  - {path}" for path in search_paths)
            raise FileNotFoundError(
                f"Configuration file '{filename}' not found in any of these locations:\n{search_locations}"
            )

        return None

    def _get_config_search_paths(self, filename: str) -> List[Path]:
        """Get list of paths to search for configuration files"""
        if Path(filename).is_absolute():
            return [Path(filename)]
        return [
            self.project_root / self.config_dir_name / filename,
            Path.cwd() / self.config_dir_name / filename,
            Path.cwd() / filename,
        ]

    def create_temp_file(self, directory: Path, suffix: str = "", prefix: str = "audio_") -> Path:
        """
        Create a unique temporary file path

        Args:
            directory: Directory the file will live in
            suffix: File extension (e.g., ".webm")
            prefix: File prefix (default: "audio_")

        Returns:
            Path to temporary file (file not created yet)
        """
        filename = f"{prefix}{uuid.uuid4().hex}{suffix}"
        return Path(directory) / filename


# Global instance for convenience
path_resolver = PathResolver()
