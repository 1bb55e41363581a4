"""Photo encoding preconditions for the upload collaborator."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from aceras.config import Settings
from aceras.errors import PhotoFormatError

if TYPE_CHECKING:
    from aceras.models import PhotoAttachment


SUPPORTED_IMAGE_SUBTYPES: tuple[str, ...] = ("jpeg", "jpg", "png", "gif", "webp")

DATA_URL_RE = re.compile(
    r"^data:image/(?P<subtype>jpeg|jpg|png|gif|webp);base64,(?P<payload>[A-Za-z0-9+/]+=*)$"
)


def check_photo_content_type(content_type: str) -> str:
    """Return the normalized MIME type or raise PhotoFormatError."""
    value = (content_type or "").split(";", 1)[0].strip().lower()
    major, _, subtype = value.partition("/")
    if major != "image" or subtype not in SUPPORTED_IMAGE_SUBTYPES:
        raise PhotoFormatError(
            "photo.content_type",
            "unsupported_encoding",
            message=f"photo.content_type: unsupported image encoding {content_type!r}",
        )
    if subtype == "jpg":
        return "image/jpeg"
    return value


def normalize_data_url(data_url: str) -> str:
    """Validate a base64 image data URL captured by a browser.

    Mobile browsers insert line breaks into long data URLs and some label
    JPEG as ``image/jpg``; both are repaired before matching.
    """
    cleaned = re.sub(r"\s", "", data_url or "")
    match = DATA_URL_RE.match(cleaned)
    if match is None:
        raise PhotoFormatError("photo.data_url", "invalid_data_url")

    if match.group("subtype") == "jpg":
        return cleaned.replace("data:image/jpg;base64,", "data:image/jpeg;base64,", 1)
    return cleaned


def data_url_content_type(data_url: str) -> str:
    """Return the MIME type declared by a validated data URL."""
    normalized = normalize_data_url(data_url)
    return normalized[len("data:") : normalized.index(";")]


def check_photo(attachment: "PhotoAttachment", settings: Optional[Settings] = None) -> "PhotoAttachment":
    """Check a photo against the configured size limit before upload."""
    settings = settings or Settings()
    if attachment.size_bytes is not None and attachment.size_bytes > settings.photo_max_bytes:
        raise PhotoFormatError(
            "photo.size_bytes",
            "too_large",
            message=(
                f"photo.size_bytes: {attachment.size_bytes} exceeds "
                f"{settings.photo_max_bytes} bytes"
            ),
        )
    return attachment
