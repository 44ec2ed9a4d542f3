"""
Speech Domain - Recognizer Session

Stateful wrapper around one Vosk KaldiRecognizer. A session is created per
request, fed PCM chunks in order, finalized once and disposed.
"""
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from vosk import KaldiRecognizer

from speech_service.domains.speech.models.audio_data import SegmentResult
from speech_service.domains.speech.services.model_manager import SpeechModel

logger = logging.getLogger(__name__)


class VoskRecognizerSession:
    """
    One decoding session bound to a loaded SpeechModel.

    Not thread-safe; a session belongs to exactly one request.
    """

    def __init__(self, model: SpeechModel, sample_rate: int = 16000):
        if model is None or not model.loaded:
            raise ValueError("VoskRecognizerSession requires a loaded SpeechModel")

        self.model = model
        self.sample_rate = sample_rate
        self._recognizer: Optional[KaldiRecognizer] = KaldiRecognizer(model.handle, sample_rate)
        self._recognizer.SetWords(True)
        self._finalized = False

    @property
    def disposed(self) -> bool:
        return self._recognizer is None

    def _active(self) -> KaldiRecognizer:
        if self._recognizer is None:
            raise RuntimeError("Recognizer session already disposed")
        return self._recognizer

    def feed(self, chunk: bytes) -> bool:
        """Advance the decoder; True when an utterance boundary was completed."""
        return bool(self._active().AcceptWaveform(chunk))

    def current_segment_result(self) -> SegmentResult:
        return SegmentResult.from_decoder_json(self._active().Result())

    def final_result(self) -> SegmentResult:
        """Flush buffered audio and return the last segment. Call once."""
        if self._finalized:
            raise RuntimeError("final_result() already called for this session")
        self._finalized = True
        return SegmentResult.from_decoder_json(self._active().FinalResult())

    def dispose(self):
        """Release the native recognizer."""
        if self._recognizer is None:
            return
        recognizer, self._recognizer = self._recognizer, None
        # KaldiRecognizer frees its native handle when the last reference goes
        del recognizer


SessionFactory = Callable[[SpeechModel, int], VoskRecognizerSession]


@contextmanager
def recognizer_session(
    model: SpeechModel,
    sample_rate: int,
    factory: SessionFactory = VoskRecognizerSession
) -> Iterator[VoskRecognizerSession]:
    """
    Open a recognizer session and dispose it on every exit path.
    """
    session = factory(model, sample_rate)
    try:
        yield session
    finally:
        session.dispose()
        logger.debug("Recognizer session disposed")
