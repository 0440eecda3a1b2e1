"""Tests for image optimization."""
import tempfile
from pathlib import Path

import pytest
from PIL import Image


def test_optimize_fits_within_bounds_and_keeps_aspect():
    from filmsync.images import ImageOptimizer

    with tempfile.TemporaryDirectory() as tmpdir:
        src = Path(tmpdir) / "still.png"
        Image.new("RGBA", (4000, 2000), (255, 0, 0, 128)).save(src)
        dst = Path(tmpdir) / "still_web.jpg"

        ImageOptimizer(max_width=1920, max_height=1080, quality=80).optimize(src, dst)

        with Image.open(dst) as out:
            assert out.format == "JPEG"
            assert out.mode == "RGB"
            assert out.size == (1920, 960)


def test_optimize_does_not_upscale():
    from filmsync.images import ImageOptimizer

    with tempfile.TemporaryDirectory() as tmpdir:
        src = Path(tmpdir) / "small.jpg"
        Image.new("RGB", (300, 200), "blue").save(src)
        dst = Path(tmpdir) / "small_web.jpg"

        ImageOptimizer().optimize(src, dst)

        with Image.open(dst) as out:
            assert out.size == (300, 200)


def test_optimize_rejects_non_images():
    from filmsync.images import ImageOptimizer

    with tempfile.TemporaryDirectory() as tmpdir:
        src = Path(tmpdir) / "fake.jpg"
        src.write_text("not an image")

        with pytest.raises(OSError):
            ImageOptimizer().optimize(src, Path(tmpdir) / "fake_web.jpg")


def test_oversized_image_raises_os_error(monkeypatch):
    from filmsync.images import ImageOptimizer

    with tempfile.TemporaryDirectory() as tmpdir:
        src = Path(tmpdir) / "huge.png"
        Image.new("RGB", (300, 200), "red").save(src)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

        with pytest.raises(OSError, match="too large"):
            ImageOptimizer().optimize(src, Path(tmpdir) / "huge_web.jpg")
