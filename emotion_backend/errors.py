# errors.py
from typing import Optional


class EmotionBackendError(Exception):
    """Base class for errors surfaced to the HTTP boundary"""
    status_code: int = 500


class ExtractionError(EmotionBackendError):
    """ffmpeg/ffprobe failed while extracting frames or reading metadata"""
    status_code = 422

    def __init__(self, message: str, tool_output: Optional[str] = None):
        super().__init__(message)
        self.tool_output = tool_output


class StorageError(EmotionBackendError):
    """The emotion/camera store rejected or failed an operation"""
    status_code = 500


class CameraNotFoundError(EmotionBackendError, LookupError):
    status_code = 404

    def __init__(self, camera_id):
        super().__init__(f"Camera with ID {camera_id} not found")
        self.camera_id = camera_id


class EmotionValidationError(EmotionBackendError, ValueError):
    """An emotion record violates the score invariants"""
    status_code = 400


class InvalidPayloadError(EmotionBackendError, ValueError):
    """An inbound payload (e.g. base64 frame) could not be decoded"""
    status_code = 400
