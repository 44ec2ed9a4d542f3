from .audio_data import (
    UploadedAudio, ConvertedAudio, SegmentResult, RecognitionResult, TranscriptionResult
)

__all__ = [
    'UploadedAudio',
    'ConvertedAudio',
    'SegmentResult',
    'RecognitionResult',
    'TranscriptionResult'
]
