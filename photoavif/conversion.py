"""
Image decoding and AVIF encoding using Pillow.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError, features

from .constants import AVIF_QUALITY, AVIF_SPEED, get_logger
from .errors import DecodeFailed, EncodeFailed


logger = get_logger("photoavif.conversion")


@dataclass
class DecodedImage:
    """Pixel buffer of one source photo, ready for encoding."""
    image: Image.Image
    width: int
    height: int
    exif: Optional[bytes] = None

    @property
    def mode(self) -> str:
        return self.image.mode


def avif_supported() -> bool:
    """Check whether the installed Pillow can write AVIF files."""
    try:
        return bool(features.check("avif"))
    except ValueError:
        return False


def to_eight_bit(image: Image.Image) -> Image.Image:
    """Rescale 16-bit, 32-bit integer and float grayscale into 8-bit L.

    Pillow's own conversion to RGB clips these modes instead of scaling
    them, which turns almost every pixel white.
    """
    if image.mode.startswith("I;16") or image.mode == "I":
        return image.convert("I").point(lambda v: v * (1 / 256)).convert("L")
    if image.mode == "F":
        # Float samples are 0.0-1.0; L conversion clamps what lies outside
        return image.point(lambda v: v * 255).convert("L")
    return image


def decode_image(data: bytes, path: Path) -> DecodedImage:
    """Decode JPEG/PNG/TIFF bytes into an upright RGB or RGBA image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            exif = img.getexif() if "exif" in img.info else None
            upright = to_eight_bit(ImageOps.exif_transpose(img))
            has_alpha = upright.mode in ("RGBA", "LA", "PA") or \
                (upright.mode == "P" and "transparency" in upright.info)
            pixels = upright.convert("RGBA" if has_alpha else "RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise DecodeFailed(f"not a readable image: {e}") from e
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeFailed(f"decoder error: {e}") from e

    # Orientation is baked into the pixels now
    exif_bytes = None
    if exif:
        exif[0x0112] = 1
        exif_bytes = exif.tobytes()

    logger.debug(f"Decoded {path.name}: {pixels.width}x{pixels.height} {pixels.mode}")
    return DecodedImage(image=pixels, width=pixels.width, height=pixels.height, exif=exif_bytes)


class AvifConverter:
    """Encodes decoded images to AVIF at fixed quality and speed."""

    def __init__(self, quality: int = AVIF_QUALITY, speed: int = AVIF_SPEED):
        if not 0 <= quality <= 100:
            raise ValueError(f"AVIF quality must be within 0-100, got {quality}")
        if not 0 <= speed <= 10:
            raise ValueError(f"AVIF speed must be within 0-10, got {speed}")
        self.quality = quality
        self.speed = speed

    def encode(self, decoded: DecodedImage) -> bytes:
        """Return the AVIF file bytes for a decoded image."""
        if decoded.mode not in ("RGB", "RGBA"):
            raise EncodeFailed(f"unsupported pixel format: {decoded.mode}")

        params = {"quality": self.quality, "speed": self.speed}
        if decoded.exif:
            params["exif"] = decoded.exif

        buffer = io.BytesIO()
        try:
            decoded.image.save(buffer, format="AVIF", **params)
        except MemoryError as e:
            raise EncodeFailed("out of memory while encoding") from e
        except (KeyError, OSError, ValueError) as e:
            raise EncodeFailed(f"encoder error: {e}") from e

        encoded = buffer.getvalue()
        if not encoded:
            raise EncodeFailed("encoder produced no output")
        return encoded
