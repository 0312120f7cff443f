"""
Square Cropper - Center square crop of arbitrary images.

side     = min(width, height)
offset_x = (width - side) // 2
offset_y = (height - side) // 2

Output is always re-encoded as JPEG so the cache can serve every entry
as image/jpeg.
"""

from __future__ import annotations
from dataclasses import dataclass
import io
import logging

from PIL import Image, UnidentifiedImageError

from ..engine_core.errors import DecodeError

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class CropBox:
    """Square region inside the source image."""
    offset_x: int
    offset_y: int
    side: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) as Pillow expects."""
        return (
            self.offset_x,
            self.offset_y,
            self.offset_x + self.side,
            self.offset_y + self.side,
        )


@dataclass(frozen=True)
class CroppedImage:
    data: bytes
    side: int
    offset_x: int
    offset_y: int
    source_width: int
    source_height: int
    content_type: str = JPEG_CONTENT_TYPE


def compute_crop_box(width: int, height: int) -> CropBox:
    """Center square for a width x height image."""
    if width <= 0 or height <= 0:
        raise DecodeError(f"Invalid image dimensions {width}x{height}")
    side = min(width, height)
    return CropBox(
        offset_x=(width - side) // 2,
        offset_y=(height - side) // 2,
        side=side,
    )


class SquareCropper:
    """
    Pure transform: image bytes in, square JPEG bytes out.

    Usage:
        cropped = SquareCropper().crop(image_bytes)
        cropped.side, cropped.offset_x, cropped.offset_y
    """

    def __init__(self, quality: int = 90):
        self.quality = quality

    def crop(self, data: bytes) -> CroppedImage:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                width, height = image.size
                crop_box = compute_crop_box(width, height)
                square = image.crop(crop_box.box)
                if square.mode not in ("RGB", "L"):
                    square = square.convert("RGB")

                out = io.BytesIO()
                square.save(out, format="JPEG", quality=self.quality)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise DecodeError(f"Cannot decode image: {e}") from e

        logger.info("Cropped %dx%d to %dx%d (offset %d, %d)",
                    width, height, crop_box.side, crop_box.side,
                    crop_box.offset_x, crop_box.offset_y)

        return CroppedImage(
            data=out.getvalue(),
            side=crop_box.side,
            offset_x=crop_box.offset_x,
            offset_y=crop_box.offset_y,
            source_width=width,
            source_height=height,
        )


def crop_square(data: bytes) -> CroppedImage:
    """Convenience wrapper around SquareCropper().crop()."""
    return SquareCropper().crop(data)
