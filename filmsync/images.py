"""Resize downloaded originals into web-ready JPEGs."""
import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageOptimizer:
    """Fit images within a bounding box and save them as JPEG."""

    def __init__(self, max_width: int = 1920, max_height: int = 1080, quality: int = 85):
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality

    def optimize(self, source: Path, destination: Path) -> None:
        """Write a resized copy of source to destination.

        Raises OSError when the image cannot be read or written.
        """
        try:
            with Image.open(source) as img:
                img = ImageOps.exif_transpose(img)
                if img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                img.thumbnail((self.max_width, self.max_height), Image.Resampling.LANCZOS)
                destination.parent.mkdir(parents=True, exist_ok=True)
                img.save(destination, format="JPEG", quality=self.quality, optimize=True)
        except UnidentifiedImageError as e:
            raise OSError(f"Unsupported image {source.name}: {e}") from e
        except Image.DecompressionBombError as e:
            raise OSError(f"Image too large {source.name}: {e}") from e

        logger.debug(f"Resized image: {source} -> {destination}")
