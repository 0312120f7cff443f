"""
Imaging Module - Photo sourcing, cropping and caching.

Pipeline for one puzzle image:
1. Provider picks a photo (falls back to a fixed one on failure)
2. Provider downloads the bytes
3. Cropper cuts the center square
4. Cache stores it and hands back a cache id
"""

from .cropper import SquareCropper, CroppedImage, CropBox, compute_crop_box, crop_square
from .cache import ImageCache, CacheEntry
from .provider import ImageProvider, PexelsImageProvider, StaticImageProvider, PhotoReference

__all__ = [
    "SquareCropper",
    "CroppedImage",
    "CropBox",
    "compute_crop_box",
    "crop_square",
    "ImageCache",
    "CacheEntry",
    "ImageProvider",
    "PexelsImageProvider",
    "StaticImageProvider",
    "PhotoReference",
]
