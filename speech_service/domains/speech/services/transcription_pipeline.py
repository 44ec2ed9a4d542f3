"""
Speech Domain - Transcription Pipeline

Orchestrates one request end to end: transcode the upload, decode the
converted audio in fixed-size chunks, aggregate the transcript and remove
every temporary file whatever the outcome.
"""
import io
import logging
import time
import wave
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import aiofiles
from starlette.concurrency import run_in_threadpool

from speech_service.domains.speech.models.audio_data import (
    ConvertedAudio, RecognitionResult, SegmentResult, TranscriptionResult, UploadedAudio
)
from speech_service.domains.speech.services.model_manager import SpeechModel
from speech_service.domains.speech.services.recognizer import (
    SessionFactory, VoskRecognizerSession, recognizer_session
)
from speech_service.domains.speech.services.transcoder import FFmpegTranscoder
from speech_service.shared.exceptions import DomainException, RecognitionFailure

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4000
PCM_SAMPLE_WIDTH = 2


class PipelineState(Enum):
    RECEIVED = "received"
    TRANSCODING = "transcoding"
    TRANSCODED = "transcoded"
    RECOGNIZING = "recognizing"
    COMPLETED = "completed"
    FAILED = "failed"


class TempFileScope:
    """
    Deletes every registered path when the block exits, however it exits.
    """

    def __init__(self, *paths: Path):
        self.paths: List[Path] = [Path(p) for p in paths]

    def __enter__(self) -> 'TempFileScope':
        return self

    def __exit__(self, exc_type, exc, tb):
        for path in self.paths:
            self._cleanup_temp_file(path)
        return False

    @staticmethod
    def _cleanup_temp_file(file_path: Path):
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to cleanup temp file {file_path}: {e}")


def iter_chunks(data: bytes, chunk_size: int) -> Iterator[bytes]:
    """Yield consecutive slices of data, the last one possibly shorter."""
    for offset in range(0, len(data), chunk_size):
        yield data[offset:offset + chunk_size]


class TranscriptionPipeline:
    """
    Domain service turning one uploaded file into a transcript.

    Responsibilities:
    - Drive transcoder and recognizer in order
    - Map stage failures to a tagged TranscriptionResult
    - Guarantee session disposal and temp file deletion
    - Track processing metrics
    """

    def __init__(
        self,
        model: SpeechModel,
        transcoder: Optional[FFmpegTranscoder] = None,
        session_factory: SessionFactory = VoskRecognizerSession,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        sample_rate: int = 16000
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.model = model
        self.transcoder = transcoder or FFmpegTranscoder(sample_rate=sample_rate)
        self.session_factory = session_factory
        self.chunk_size = chunk_size
        self.sample_rate = sample_rate

        self.metrics = {
            "total_processed": 0,
            "successful_transcriptions": 0,
            "failed_transcriptions": 0,
            "avg_processing_time": 0.0
        }

    @staticmethod
    def converted_path_for(uploaded: UploadedAudio) -> Path:
        """Converted file sits next to the upload, so it inherits its uniqueness."""
        path = uploaded.temp_file_path
        return path.with_name(f"{path.name}_converted.wav")

    async def process_upload(self, uploaded: UploadedAudio) -> TranscriptionResult:
        """
        Run the full pipeline for one saved upload.

        Args:
            uploaded: Upload already written to disk

        Returns:
            TranscriptionResult, successful or tagged with the failing stage
        """
        start_time = time.monotonic()
        self.metrics["total_processed"] += 1
        state = PipelineState.RECEIVED
        converted_path = self.converted_path_for(uploaded)

        try:
            with TempFileScope(uploaded.temp_file_path, converted_path):
                state = PipelineState.TRANSCODING
                converted = await self.transcoder.convert(uploaded.temp_file_path, converted_path)
                state = PipelineState.TRANSCODED

                state = PipelineState.RECOGNIZING
                wav_bytes = await self._read_converted(converted)
                recognition = await run_in_threadpool(self._decode, wav_bytes)
            state = PipelineState.COMPLETED

        except DomainException as e:
            processing_time = time.monotonic() - start_time
            self._update_metrics(False, processing_time)
            logger.error(
                f"Transcription of '{uploaded.original_filename}' failed while "
                f"{state.value}: {e.error_code}: {e.message}"
            )
            return TranscriptionResult(
                success=False,
                processing_time=processing_time,
                error_code=e.error_code,
                error=e.message,
                failed_state=state.value,
                status_code=e.status_code
            )

        processing_time = time.monotonic() - start_time
        self._update_metrics(True, processing_time)
        logger.info(
            f"Transcribed '{uploaded.original_filename}' in {processing_time:.3f}s "
            f"({len(recognition.transcript)} chars)"
        )
        return TranscriptionResult(
            success=True,
            processing_time=processing_time,
            transcript=recognition.transcript,
            confidence=recognition.confidence
        )

    async def _read_converted(self, converted: ConvertedAudio) -> bytes:
        try:
            async with aiofiles.open(converted.temp_file_path, 'rb') as f:
                return await f.read()
        except OSError as e:
            raise RecognitionFailure(f"Cannot read converted audio: {e}", cause=e) from e

    def _read_pcm_frames(self, wav_bytes: bytes) -> bytes:
        """Extract raw PCM frames, checking the container matches the recognizer."""
        try:
            with wave.open(io.BytesIO(wav_bytes), 'rb') as wav:
                if (wav.getnchannels() != 1
                        or wav.getsampwidth() != PCM_SAMPLE_WIDTH
                        or wav.getframerate() != self.sample_rate):
                    raise RecognitionFailure(
                        f"Converted audio must be {self.sample_rate} Hz mono 16-bit PCM, got "
                        f"{wav.getframerate()} Hz, {wav.getnchannels()} channel(s), "
                        f"{wav.getsampwidth() * 8}-bit"
                    )
                return wav.readframes(wav.getnframes())
        except (wave.Error, EOFError) as e:
            raise RecognitionFailure(f"Converted audio is not a valid WAV file: {e}", cause=e) from e

    def _decode(self, wav_bytes: bytes) -> RecognitionResult:
        """
        Feed the PCM frames through a fresh recognizer session.

        Runs in a worker thread; the session never leaves it.
        """
        frames = self._read_pcm_frames(wav_bytes)
        segments: List[SegmentResult] = []
        chunks_fed = 0

        try:
            with recognizer_session(self.model, self.sample_rate, self.session_factory) as session:
                for chunk in iter_chunks(frames, self.chunk_size):
                    chunks_fed += 1
                    if session.feed(chunk):
                        self._append_segment(segments, session.current_segment_result())
                final = session.final_result()
                self._append_segment(segments, final)
        except Exception as e:
            raise RecognitionFailure(
                f"Speech recognition failed: {e}", chunks_fed=chunks_fed, cause=e
            ) from e

        logger.debug(f"Decoded {chunks_fed} chunks into {len(segments)} segment(s)")
        return RecognitionResult(
            transcript=" ".join(segment.text for segment in segments),
            confidence=self._overall_confidence(segments)
        )

    @staticmethod
    def _append_segment(segments: List[SegmentResult], segment: SegmentResult):
        text = segment.text.strip()
        if text:
            segments.append(SegmentResult(text=text, confidence=segment.confidence))

    @staticmethod
    def _overall_confidence(segments: List[SegmentResult]) -> Optional[float]:
        """Word-weighted mean of the scored segments, None when none is scored."""
        total = 0.0
        words = 0
        for segment in segments:
            if segment.confidence is None:
                continue
            count = len(segment.text.split())
            total += segment.confidence * count
            words += count
        return total / words if words else None

    def _update_metrics(self, success: bool, processing_time: float):
        """
        Update processing metrics.

        Args:
            success: Whether transcription was successful
            processing_time: Time taken in seconds
        """
        if success:
            self.metrics["successful_transcriptions"] += 1
        else:
            self.metrics["failed_transcriptions"] += 1

        completed = self.metrics["successful_transcriptions"] + self.metrics["failed_transcriptions"]
        current_avg = self.metrics["avg_processing_time"]
        self.metrics["avg_processing_time"] = (
            (current_avg * (completed - 1) + processing_time) / completed
        )

    def get_metrics(self) -> Dict[str, Any]:
        """Get current processing metrics."""
        return self.metrics.copy()
