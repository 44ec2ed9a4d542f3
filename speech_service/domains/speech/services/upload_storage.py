"""
Speech Domain - Upload Storage

Persists an incoming multipart file to a uniquely named temporary file.
"""
import logging
from pathlib import Path
from typing import Any

import aiofiles

from speech_service.domains.speech.models.audio_data import UploadedAudio
from speech_service.path_resolver import path_resolver
from speech_service.shared.exceptions import UploadStorageError

logger = logging.getLogger(__name__)

READ_BLOCK_SIZE = 1024 * 1024


async def save_upload(upload: Any, upload_dir: Path) -> UploadedAudio:
    """
    Stream an UploadFile to disk.

    Args:
        upload: Object with an async read(size) and a filename attribute
        upload_dir: Directory for raw uploads (created if missing)

    Returns:
        UploadedAudio for the saved file

    Raises:
        UploadStorageError: If writing fails; the partial file is removed
    """
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    temp_path = path_resolver.create_temp_file(upload_dir, prefix="upload_")

    data_size = 0
    try:
        async with aiofiles.open(temp_path, 'wb') as f:
            while True:
                block = await upload.read(READ_BLOCK_SIZE)
                if not block:
                    break
                await f.write(block)
                data_size += len(block)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        raise UploadStorageError(
            f"Failed to store uploaded audio: {e}", temp_file_path=str(temp_path), cause=e
        ) from e
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    logger.info(f"Stored upload '{upload.filename}' ({data_size} bytes) at {temp_path}")
    return UploadedAudio(
        temp_file_path=temp_path,
        original_filename=upload.filename or "",
        data_size=data_size
    )
