"""
Speech Domain - Audio Data Models

Data structures for uploaded and converted audio, decoder results and the
outcome of one transcription request.
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UploadedAudio:
    """
    Raw upload saved to a per-request temporary file.
    """
    temp_file_path: Path
    original_filename: str
    data_size: int


@dataclass(frozen=True)
class ConvertedAudio:
    """
    Output of a successful transcode: 16 kHz mono linear PCM WAV.
    """
    temp_file_path: Path
    sample_rate: int = 16000
    channels: int = 1
    format: str = "wav"


@dataclass(frozen=True)
class SegmentResult:
    """Text decoded for one segment, or for the final flush."""
    text: str
    confidence: Optional[float] = None

    @classmethod
    def from_decoder_json(cls, raw: str) -> 'SegmentResult':
        """
        Parse a recognizer result document.

        Confidence is the mean of the per-word scores when words are present,
        otherwise a top-level "confidence" key, otherwise None.
        """
        data = json.loads(raw) if raw else {}
        text = data.get("text") or ""

        confidence = None
        words = data.get("result") or []
        scores = [w["conf"] for w in words if isinstance(w, dict) and "conf" in w]
        if scores:
            confidence = sum(scores) / len(scores)
        elif data.get("confidence") is not None:
            confidence = float(data["confidence"])

        if confidence is not None:
            confidence = min(1.0, max(0.0, confidence))

        return cls(text=text, confidence=confidence)


@dataclass(frozen=True)
class RecognitionResult:
    """Aggregated transcript for a whole file."""
    transcript: str
    confidence: Optional[float] = None


@dataclass
class TranscriptionResult:
    """
    Result of one pipeline run, success or failure.
    """
    success: bool
    processing_time: float
    transcript: Optional[str] = None
    confidence: Optional[float] = None
    error_code: Optional[str] = None
    error: Optional[str] = None
    failed_state: Optional[str] = None
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        if self.success:
            return {
                "success": True,
                "transcript": self.transcript,
                "confidence": self.confidence
            }

        return {
            "success": False,
            "error": self.error_code,
            "message": self.error
        }
