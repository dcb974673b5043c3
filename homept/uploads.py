"""
Uploaded images -> base64 data URLs for the vision model.
"""
import base64
import binascii
import io
from typing import Optional

from PIL import Image, UnidentifiedImageError

from homept.errors import InputError


def sniff_image_mimetype(data: bytes, label: str = "upload") -> str:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
    except (UnidentifiedImageError, OSError) as e:
        raise InputError(f"{label} is not a readable image") from e
    return Image.MIME.get(fmt) or "image/jpeg"


def bytes_to_data_url(data: bytes, mimetype: str) -> str:
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{mimetype};base64,{b64}"


def upload_to_data_url(file_storage, label: str) -> str:
    data = file_storage.read()
    if not data:
        raise InputError(f"{label} is empty")
    return bytes_to_data_url(data, sniff_image_mimetype(data, label))


def path_to_data_url(path: str) -> str:
    with open(path, "rb") as f:
        data = f.read()
    return bytes_to_data_url(data, sniff_image_mimetype(data, path))


def normalize_data_url(value: Optional[str], label: str = "clinicalImageBase64") -> Optional[str]:
    """Accept a data URL as is; bare base64 gets its mimetype sniffed."""
    value = (value or "").strip()
    if not value:
        return None
    if value.startswith("data:"):
        return value
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError(f"{label} is neither a data URL nor base64") from e
    return bytes_to_data_url(raw, sniff_image_mimetype(raw, label))
