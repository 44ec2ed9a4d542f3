import json

from speech_service.domains.speech.models.audio_data import SegmentResult, TranscriptionResult


def test_segment_result_without_words_has_no_confidence():
    result = SegmentResult.from_decoder_json(json.dumps({"text": "hello"}))
    assert result.text == "hello"
    assert result.confidence is None


def test_segment_result_empty_document():
    assert SegmentResult.from_decoder_json("") == SegmentResult(text="", confidence=None)
    assert SegmentResult.from_decoder_json('{"partial": ""}').text == ""


def test_segment_result_top_level_confidence_is_clamped():
    result = SegmentResult.from_decoder_json(json.dumps({"text": "hi", "confidence": 1.7}))
    assert result.confidence == 1.0


def test_failure_serializes_error_kind_and_message():
    result = TranscriptionResult(
        success=False,
        processing_time=0.1,
        error_code="transcoder_launch_failed",
        error="Failed to launch ffmpeg: not found",
        status_code=500,
    )
    assert result.to_dict() == {
        "success": False,
        "error": "transcoder_launch_failed",
        "message": "Failed to launch ffmpeg: not found",
    }
