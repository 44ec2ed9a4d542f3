"""
Speech Domain - Acoustic Model Lifecycle

The Vosk model is loaded once at process start, before the HTTP listener
binds, and shared read-only by every request.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vosk import Model, SetLogLevel

from speech_service.shared.exceptions import ModelLoadFailure

logger = logging.getLogger(__name__)

MODEL_DOWNLOAD_URL = "https://alphacephei.com/vosk/models"


@dataclass(frozen=True)
class SpeechModel:
    """
    Immutable handle to a loaded acoustic/language model.

    The wrapped handle is never replaced after construction; concurrent
    recognizer sessions may all reference it.
    """
    model_path: Path
    handle: Any

    @property
    def loaded(self) -> bool:
        return self.handle is not None

    @classmethod
    def load(cls, model_path: Path, log_level: int = 0) -> 'SpeechModel':
        """
        Load the model directory synchronously.

        Args:
            model_path: Directory of an unpacked Vosk model
            log_level: Kaldi/Vosk native log level

        Raises:
            ModelLoadFailure: If the directory is missing or loading fails
        """
        model_path = Path(model_path)
        if not model_path.exists():
            raise ModelLoadFailure(
                f"Model not found at {model_path}. Download a Vosk model from "
                f"{MODEL_DOWNLOAD_URL} and extract it there.",
                model_path=str(model_path)
            )

        SetLogLevel(log_level)
        try:
            handle = Model(str(model_path))
        except Exception as e:
            raise ModelLoadFailure(
                f"Failed to load Vosk model: {e}", model_path=str(model_path), cause=e
            ) from e

        logger.info(f"Vosk model loaded from {model_path}")
        return cls(model_path=model_path, handle=handle)
