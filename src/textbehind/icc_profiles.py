import functools

from PIL import ImageCms

sRGB = ImageCms.createProfile("sRGB")


@functools.lru_cache(maxsize=None)
def srgb_bytes() -> bytes:
    """Serialized sRGB profile for embedding in exported files."""
    return ImageCms.ImageCmsProfile(sRGB).tobytes()
