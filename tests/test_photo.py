import pytest

from aceras.config import Settings
from aceras.errors import PhotoFormatError
from aceras.intake.photo import (
    check_photo,
    check_photo_content_type,
    data_url_content_type,
    normalize_data_url,
)
from aceras.models import PhotoAttachment


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("image/jpeg", "image/jpeg"),
        ("image/jpg", "image/jpeg"),
        ("IMAGE/PNG", "image/png"),
        ("image/webp; charset=binary", "image/webp"),
        ("image/gif", "image/gif"),
    ],
)
def test_supported_content_types(content_type, expected):
    assert check_photo_content_type(content_type) == expected


@pytest.mark.parametrize("content_type", ["image/heic", "application/pdf", "", "jpeg"])
def test_unsupported_content_types(content_type):
    with pytest.raises(PhotoFormatError) as excinfo:
        check_photo_content_type(content_type)
    assert excinfo.value.reason == "unsupported_encoding"


def test_data_url_line_breaks_are_removed():
    url = "data:image/png;base64,iVBORw0K\nGgoAAAA\r\nNSUhEUg=="
    assert normalize_data_url(url) == "data:image/png;base64,iVBORw0KGgoAAAANSUhEUg=="


def test_data_url_jpg_is_rewritten():
    normalized = normalize_data_url("data:image/jpg;base64,/9j/4AAQ")
    assert normalized == "data:image/jpeg;base64,/9j/4AAQ"
    assert data_url_content_type("data:image/jpg;base64,/9j/4AAQ") == "image/jpeg"


@pytest.mark.parametrize(
    "url",
    [
        "data:image/svg+xml;base64,PHN2Zz4=",
        "data:text/plain;base64,aGVsbG8=",
        "https://example.com/photo.jpg",
        "data:image/png,rawbytes",
    ],
)
def test_invalid_data_urls(url):
    with pytest.raises(PhotoFormatError) as excinfo:
        normalize_data_url(url)
    assert excinfo.value.reason == "invalid_data_url"


def test_photo_size_limit():
    settings = Settings(PHOTO_MAX_BYTES=100)
    assert check_photo(PhotoAttachment(content_type="image/png", size_bytes=100), settings)
    with pytest.raises(PhotoFormatError) as excinfo:
        check_photo(PhotoAttachment(content_type="image/png", size_bytes=101), settings)
    assert excinfo.value.reason == "too_large"


def test_photo_without_size_passes():
    attachment = PhotoAttachment(content_type="image/png", url="https://cdn.example/p.png")
    assert check_photo(attachment, Settings(PHOTO_MAX_BYTES=1)) is attachment
