# emotion_backend/api/schemas.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from emotion_backend.utils.image_utils import decode_base64_image


class EmotionDetectionRequest(BaseModel):
    """Detection pushed by an AI client"""
    label: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    box: Optional[Any] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StreamFrameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: str = Field(min_length=1)
    camera_id: Optional[str] = Field(default=None, alias="cameraId")

    @field_validator("image")
    @classmethod
    def image_must_be_base64(cls, value: str) -> str:
        decode_base64_image(value)
        return value


class CameraCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    stream_url: Optional[str] = Field(default=None, alias="streamUrl")


class CameraOnlineRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stream_url: Optional[str] = Field(default=None, alias="streamUrl")
