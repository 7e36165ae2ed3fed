"""Tests for local and remote image loading."""
import httpx
import pytest

import config
from image_loader import is_remote_url, load_images, load_local_image, mime_type_for_path
from models import ImageDimensions, ImageInfo


@pytest.fixture
def image_dir(tmp_path, png_factory, jpeg_factory):
    (tmp_path / "pic.png").write_bytes(png_factory(30, 20))
    (tmp_path / "my photo.jpg").write_bytes(jpeg_factory(16, 8))
    (tmp_path / "anim.gif").write_bytes(b"GIF89a")
    return tmp_path


def make_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_is_remote_url():
    assert is_remote_url("https://example.com/a.png")
    assert is_remote_url("http://example.com/a.png")
    assert not is_remote_url("images/a.png")
    assert not is_remote_url("ftp://example.com/a.png")


def test_mime_type_for_path():
    assert mime_type_for_path("a.PNG") == "image/png"
    assert mime_type_for_path("a.jpeg") == "image/jpeg"
    assert mime_type_for_path("a.gif") is None


class TestLocal:

    def test_relative_path(self, image_dir):
        img = load_local_image(ImageInfo("img_0", "pic.png"), str(image_dir))
        assert img.mime_type == "image/png"
        assert img.dimensions == ImageDimensions(30, 20)

    def test_percent_encoded_path(self, image_dir):
        img = load_local_image(ImageInfo("img_0", "my%20photo.jpg"), str(image_dir))
        assert img is not None
        assert img.dimensions == ImageDimensions(16, 8)

    def test_absolute_path(self, image_dir):
        img = load_local_image(ImageInfo("img_0", str(image_dir / "pic.png")), "/nonexistent")
        assert img is not None

    def test_missing_file(self, image_dir):
        assert load_local_image(ImageInfo("img_0", "nope.png"), str(image_dir)) is None

    def test_unsupported_extension(self, image_dir):
        assert load_local_image(ImageInfo("img_0", "anim.gif"), str(image_dir)) is None


class TestRemote:

    def test_png_download(self, png_factory):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200, content=png_factory(12, 34),
                                  headers={"content-type": "image/png"})

        with make_client(handler) as client:
            loaded = load_images([ImageInfo("img_0", "https://example.com/x.png")], ".", client)
        assert loaded["img_0"].dimensions == ImageDimensions(12, 34)
        assert seen["ua"] == config.REMOTE_IMAGE_USER_AGENT

    def test_http_error_status(self):
        with make_client(lambda request: httpx.Response(404)) as client:
            loaded = load_images([ImageInfo("img_0", "https://example.com/x.png")], ".", client)
        assert loaded == {}

    def test_wrong_content_type_is_sniffed(self, jpeg_factory):
        def handler(request):
            return httpx.Response(200, content=jpeg_factory(5, 7),
                                  headers={"content-type": "application/octet-stream"})

        with make_client(handler) as client:
            loaded = load_images([ImageInfo("img_0", "https://example.com/x")], ".", client)
        assert loaded["img_0"].mime_type == "image/jpeg"

    def test_html_response_rejected(self):
        def handler(request):
            return httpx.Response(200, content=b"<html></html>",
                                  headers={"content-type": "text/html"})

        with make_client(handler) as client:
            loaded = load_images([ImageInfo("img_0", "https://example.com/x")], ".", client)
        assert loaded == {}

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with make_client(handler) as client:
            loaded = load_images([ImageInfo("img_0", "https://example.com/x.png")], ".", client)
        assert loaded == {}


def test_mixed_batch_keeps_only_successes(image_dir, png_factory):
    def handler(request):
        return httpx.Response(200, content=png_factory(3, 3), headers={"content-type": "image/png"})

    infos = [
        ImageInfo("img_0", "pic.png"),
        ImageInfo("img_1", "missing.png"),
        ImageInfo("img_2", "https://example.com/r.png"),
    ]
    with make_client(handler) as client:
        loaded = load_images(infos, str(image_dir), client)
    assert sorted(loaded) == ["img_0", "img_2"]


def test_no_images_needs_no_client():
    assert load_images([], ".") == {}


class TestUndecodable:

    def test_local_garbage_with_png_extension(self, tmp_path):
        (tmp_path / "bad.png").write_bytes(b"this is not an image at all")
        assert load_local_image(ImageInfo("img_0", "bad.png"), str(tmp_path)) is None

    def test_local_truncated_png(self, tmp_path, png_factory):
        (tmp_path / "cut.png").write_bytes(png_factory(40, 40)[:30])
        assert load_local_image(ImageInfo("img_0", "cut.png"), str(tmp_path)) is None

    def test_remote_garbage_labelled_png(self):
        def handler(request):
            return httpx.Response(200, content=b"\x89PNG broken",
                                  headers={"content-type": "image/png"})

        with make_client(handler) as client:
            loaded = load_images([ImageInfo("img_0", "https://example.com/x.png")], ".", client)
        assert loaded == {}
