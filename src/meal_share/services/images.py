"""Image pre-processing for meal uploads."""

import io
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from meal_share.domain.errors import ImageProcessingError
from meal_share.domain.meals import ImageUpload

register_heif_opener()

_logger = logging.getLogger(__name__)

HEIC_MEDIA_TYPES = frozenset({"image/heic", "image/heif"})
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "gif", "heic", "heif"})
_MEDIA_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "image/heif": "heif",
}
_PIL_FORMAT_MEDIA_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}
JPEG_QUALITY = 85


def image_extension(upload: ImageUpload) -> str:
    """Resolve the file extension used for a stored meal image."""
    if upload.converted_from_heic:
        return "jpg"
    suffix = PurePosixPath(upload.filename).suffix.lstrip(".").lower()
    if suffix in IMAGE_EXTENSIONS:
        return suffix
    return _MEDIA_TYPE_EXTENSIONS.get(upload.media_type.lower(), "jpg")


def is_heic(upload: ImageUpload) -> bool:
    suffix = PurePosixPath(upload.filename).suffix.lower()
    return upload.media_type.lower() in HEIC_MEDIA_TYPES or suffix in {
        ".heic",
        ".heif",
    }


@dataclass
class ImagePreprocessor:
    """Converts HEIC uploads to JPEG and downscales oversized images."""

    max_dimension: int = 1920

    def prepare(self, upload: ImageUpload) -> ImageUpload:
        """Return an upload ready for validation and storage."""
        if is_heic(upload):
            return self._convert_heic(upload)
        try:
            image = Image.open(io.BytesIO(upload.content))
        except UnidentifiedImageError:
            # Validation reports unsupported types.
            return upload
        except (OSError, Image.DecompressionBombError) as exc:
            raise _undecodable(upload) from exc
        image_format = image.format
        size = image.size
        if max(size) <= self.max_dimension:
            return upload
        if image_format not in _PIL_FORMAT_MEDIA_TYPES:
            return upload
        try:
            resized = self._fit(image)
            content = _encode(resized, image_format)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise _undecodable(upload) from exc
        _logger.info(
            "Downscaled image %s from %sx%s to %sx%s",
            upload.filename,
            size[0],
            size[1],
            resized.width,
            resized.height,
        )
        return ImageUpload(
            content=content,
            filename=upload.filename,
            media_type=_PIL_FORMAT_MEDIA_TYPES[image_format],
        )

    def _convert_heic(self, upload: ImageUpload) -> ImageUpload:
        try:
            image = Image.open(io.BytesIO(upload.content))
            image.load()
        except (
            UnidentifiedImageError,
            OSError,
            ValueError,
            Image.DecompressionBombError,
        ) as exc:
            _logger.exception("Failed to decode HEIC image %s", upload.filename)
            raise ImageProcessingError(
                "Image could not be converted from HEIC. Please upload a JPEG, "
                "PNG, or WebP file."
            ) from exc
        converted = self._fit(ImageOps.exif_transpose(image))
        stem = PurePosixPath(upload.filename).stem or "image"
        _logger.info("Converted HEIC image %s to JPEG", upload.filename)
        return ImageUpload(
            content=_encode(converted, "JPEG"),
            filename=f"{stem}.jpg",
            media_type="image/jpeg",
            converted_from_heic=True,
        )

    def _fit(self, image: Image.Image) -> Image.Image:
        if max(image.size) <= self.max_dimension:
            return image
        fitted = image.copy()
        fitted.thumbnail((self.max_dimension, self.max_dimension))
        return fitted


def _encode(image: Image.Image, image_format: str) -> bytes:
    output = io.BytesIO()
    if image_format == "JPEG":
        _to_rgb(image).save(
            output, format="JPEG", quality=JPEG_QUALITY, optimize=True
        )
    else:
        image.save(output, format=image_format)
    return output.getvalue()


def _to_rgb(image: Image.Image) -> Image.Image:
    """Flatten transparency onto a white background."""
    if image.mode == "P":
        image = image.convert("RGBA")
    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def _undecodable(upload: ImageUpload) -> ImageProcessingError:
    _logger.exception("Failed to decode image %s", upload.filename)
    return ImageProcessingError(
        "Image could not be read. Please upload a smaller or intact JPEG, "
        "PNG, or WebP file."
    )
