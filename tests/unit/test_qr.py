import pytest

from app.domain.exceptions import InvalidQrRequestError
from app.domain.qr import print_size, render_qr

PROFILE_URL = "https://safetap.cl/s/ABC2345"


def test_print_size_scales_css_pixels_to_dpi():
    assert print_size(512, 300) == 1600
    assert print_size(96, 96) == 96


def test_png_is_default():
    image = render_qr(PROFILE_URL)

    assert image.media_type == "image/png"
    assert image.extension == "png"
    assert image.content.startswith(b"\x89PNG")


def test_svg():
    image = render_qr(PROFILE_URL, "svg", size=128, dpi=96)

    assert image.media_type == "image/svg+xml"
    assert b"<svg" in image.content


@pytest.mark.parametrize(
    "url, fmt, size, dpi",
    [
        (None, "png", 512, 300),
        ("", "png", 512, 300),
        (PROFILE_URL, "jpg", 512, 300),
        (PROFILE_URL, "png", 0, 300),
        (PROFILE_URL, "png", 512, -1),
    ],
)
def test_invalid_requests(url, fmt, size, dpi):
    with pytest.raises(InvalidQrRequestError):
        render_qr(url, fmt, size, dpi)
