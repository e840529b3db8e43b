"""Asset image upload service."""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError

from ..models import AssetImage

logger = logging.getLogger(__name__)


def validate_image_upload(uploaded_file):
    """Reject non-image uploads and files over the configured size."""
    content_type = getattr(uploaded_file, "content_type", "") or ""
    if not content_type.startswith("image/"):
        raise ValidationError(
            {"file": f"Only image files are allowed. Got '{content_type}'."}
        )
    max_bytes = settings.IMAGE_UPLOAD_MAX_BYTES
    if uploaded_file.size > max_bytes:
        raise ValidationError(
            {
                "file": (
                    f"Image too large. Maximum size is "
                    f"{max_bytes // (1024 * 1024)} MB."
                )
            }
        )


def store_asset_image(asset, uploaded_file, performed_by) -> AssetImage:
    """Validate and save an uploaded image for ``asset``.

    Storage failures propagate as ``OSError``.
    """
    validate_image_upload(uploaded_file)
    image = AssetImage(
        asset=asset,
        name=uploaded_file.name,
        content_type=uploaded_file.content_type,
        size=uploaded_file.size,
        uploaded_by=performed_by,
    )
    image.image.save(uploaded_file.name, uploaded_file, save=False)
    image.save()
    logger.info(
        "Stored image %s for asset %s (%d bytes)",
        image.image.name,
        asset.pk,
        image.size,
    )
    return image
