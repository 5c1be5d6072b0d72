# emotion_backend/utils/image_utils.py
import base64
import binascii
import re

from emotion_backend.errors import InvalidPayloadError

_DATA_URI_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


def strip_data_uri(encoded_image: str) -> str:
    """Drop a leading ``data:image/<type>;base64,`` prefix if present"""
    return _DATA_URI_PREFIX.sub("", encoded_image.strip(), count=1)


def decode_base64_image(encoded_image: str) -> bytes:
    """Decode a base64 (optionally data-URI) image payload into raw bytes"""
    if not isinstance(encoded_image, str) or not encoded_image.strip():
        raise InvalidPayloadError("Image payload is empty")

    payload = re.sub(r"\s+", "", strip_data_uri(encoded_image))
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidPayloadError(f"Invalid base64 image payload: {e}") from e

    if not data:
        raise InvalidPayloadError("Image payload decoded to zero bytes")
    return data
