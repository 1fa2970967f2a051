"""
Cloudinary media uploads.

Uploads go to Cloudinary's unsigned upload endpoint using an upload preset,
so no API secret is held by the service.
"""

import re
from typing import Any, BinaryIO, Dict, Iterable, Optional, Tuple, Union

import requests

import config
from errors import UploadError
from logger import get_logger

logger = get_logger("media")

UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/auto/upload"
DELIVERY_URL = "https://res.cloudinary.com/{cloud_name}/{resource}/upload/"

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
ALLOWED_VIDEO_TYPES = ("video/mp4", "video/webm", "video/ogg", "video/avi", "video/mov")

DEFAULT_MAX_SIZE_MB = 50

_VERSIONED_PATH = re.compile(r"/v\d+/(.+)\.(\w+)$")


def validate_file(
    size: int,
    mime_type: Optional[str],
    max_size_mb: float = DEFAULT_MAX_SIZE_MB,
    allowed_types: Optional[Iterable[str]] = None,
) -> Tuple[bool, Optional[str]]:
    if size > max_size_mb * 1024 * 1024:
        return False, f"File size must be less than {max_size_mb:g}MB"
    allowed = tuple(allowed_types) if allowed_types is not None else ALLOWED_IMAGE_TYPES + ALLOWED_VIDEO_TYPES
    if mime_type not in allowed:
        return False, f"File type {mime_type} is not supported"
    return True, None


def upload_to_cloudinary(
    file: Union[bytes, BinaryIO],
    filename: str,
    resource_type: str = "auto",
    folder: Optional[str] = None,
) -> Dict[str, Any]:
    cloud_name = config.CLOUDINARY_CLOUD_NAME
    preset = config.CLOUDINARY_UPLOAD_PRESET
    if not cloud_name or not preset:
        raise UploadError("Cloudinary configuration missing. Set CLOUDINARY_CLOUD_NAME and CLOUDINARY_UPLOAD_PRESET.")

    data = {
        "upload_preset": preset,
        "folder": folder or config.CLOUDINARY_FOLDER,
        "resource_type": resource_type,
    }
    try:
        response = requests.post(
            UPLOAD_URL.format(cloud_name=cloud_name),
            data=data,
            files={"file": (filename, file)},
            timeout=config.UPLOAD_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.Timeout as e:
        logger.error("Upload of %s timed out", filename)
        raise UploadError("Upload timeout") from e
    except requests.RequestException as e:
        logger.error("Upload of %s failed: %s", filename, e)
        raise UploadError(f"Upload failed: {e}") from e

    try:
        result = response.json()
    except ValueError as e:
        raise UploadError("Failed to parse Cloudinary response") from e

    logger.info("Uploaded %s as %s (%s)", filename, result.get("public_id"), result.get("resource_type"))
    return result


def get_transformed_url(
    url: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
    crop: Optional[str] = None,
    quality: Optional[str] = None,
    fmt: Optional[str] = None,
    resource: str = "image",
) -> str:
    """
    Rebuild a Cloudinary delivery URL with a transformation segment such as
    w_300,h_200,c_fill. Non-Cloudinary URLs and URLs without a version
    segment are returned unchanged.
    """
    if "cloudinary.com" not in url:
        return url
    match = _VERSIONED_PATH.search(url)
    if not match:
        return url
    public_id, original_format = match.groups()

    transforms = []
    if width:
        transforms.append(f"w_{width}")
    if height:
        transforms.append(f"h_{height}")
    if quality:
        transforms.append(f"q_{quality}")
    if crop:
        transforms.append(f"c_{crop}")
    segment = ",".join(transforms) + "/" if transforms else ""
    extension = fmt if fmt and fmt != "auto" else original_format

    base = DELIVERY_URL.format(cloud_name=config.CLOUDINARY_CLOUD_NAME, resource=resource)
    return f"{base}{segment}{public_id}.{extension}"


def get_file_type(resource_type: Optional[str]) -> str:
    if resource_type in ("image", "video"):
        return resource_type
    return "other"
