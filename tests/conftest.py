"""Shared fixtures: synthetic images and the standard-font configuration."""
from io import BytesIO

import pytest
from PIL import Image

from font_loader import FontConfig
from models import Margins


def make_image_bytes(width: int, height: int, fmt: str = "PNG") -> bytes:
    img = Image.new("RGB", (width, height), color=(200, 40, 40))
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_factory():
    def factory(width: int, height: int) -> bytes:
        return make_image_bytes(width, height, "PNG")
    return factory


@pytest.fixture
def jpeg_factory():
    def factory(width: int, height: int) -> bytes:
        return make_image_bytes(width, height, "JPEG")
    return factory


@pytest.fixture
def std_fonts() -> FontConfig:
    """Helvetica / Courier, so tests never depend on installed system fonts."""
    return FontConfig()


@pytest.fixture
def margins() -> Margins:
    return Margins(40, 40, 40, 40)
