"""Ticket image upload to Cloudinary (unsigned preset upload)."""

import logging
from typing import Dict, List, Optional
import requests
import config
from errors import ServiceError, UpstreamError

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud}/image/upload"
RESULT_FIELDS = ("secure_url", "public_id", "format", "width", "height", "bytes")


def upload_image(base64_image: str, folder: Optional[str] = None, public_id: Optional[str] = None,
                 tags: Optional[List[str]] = None) -> Dict:
    """Upload a data-URI/base64 image and return the stored image's metadata."""
    if not (config.CLOUDINARY_CLOUD_NAME and config.CLOUDINARY_API_KEY and config.CLOUDINARY_API_SECRET):
        logger.error("Cloudinary credentials not configured")
        raise ServiceError("Cloudinary configuration missing", status_code=500)

    form = {
        "file": base64_image,
        "upload_preset": config.CLOUDINARY_UPLOAD_PRESET,
        "folder": folder or config.CLOUDINARY_TICKET_FOLDER,
    }
    if public_id:
        form["public_id"] = public_id
    if tags:
        form["tags"] = ",".join(tags)

    url = CLOUDINARY_UPLOAD_URL.format(cloud=config.CLOUDINARY_CLOUD_NAME)
    try:
        response = requests.post(url, data=form, timeout=config.HTTP_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Cloudinary upload failed: {e}")
        raise UpstreamError("Failed to upload image to Cloudinary")

    if not response.ok:
        try:
            message = response.json().get("error", {}).get("message")
        except ValueError:
            message = None
        logger.warning(f"Cloudinary rejected upload ({response.status_code}): {message}")
        raise UpstreamError(message or "Failed to upload image to Cloudinary", status_code=response.status_code)

    result = response.json()
    logger.info(f"Uploaded ticket image {result.get('public_id')}")
    return {field: result.get(field) for field in RESULT_FIELDS}
