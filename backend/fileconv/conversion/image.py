"""In-process image conversion with Pillow."""
import logging
from typing import Optional

from PIL import Image

from fileconv.conversion.formats import SUPPORTED_FORMATS, ConversionCategory, FileType
from fileconv.conversion.models import ConversionRequest, ConversionResult, ImageOptions
from fileconv.conversion.validation import Timer, check_request, ensure_output_dir

logger = logging.getLogger("fileconv.image")

# Pillow format name and the image modes its encoder writes without conversion
_ENCODERS: dict[FileType, tuple[str, tuple[str, ...]]] = {
    FileType.JPEG: ("JPEG", ("RGB", "L", "CMYK")),
    FileType.PNG: ("PNG", ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16")),
    FileType.BMP: ("BMP", ("1", "L", "P", "RGB", "RGBA")),
    FileType.GIF: ("GIF", ("1", "L", "P", "RGB", "RGBA")),
    FileType.WEBP: ("WEBP", ("RGB", "RGBA")),
    FileType.TIFF: ("TIFF", ("1", "L", "LA", "P", "RGB", "RGBA", "CMYK", "I", "F")),
}

_QUALITY_FORMATS = (FileType.JPEG, FileType.WEBP)


def save_kwargs(target: FileType, options: ImageOptions) -> dict:
    """Pillow save() keyword arguments for target. Only JPEG and WEBP take a quality."""
    fmt, _ = _ENCODERS[target]
    kw: dict = {"format": fmt}
    if target in _QUALITY_FORMATS:
        kw["quality"] = options.quality
    return kw


def _prepare_mode(img: Image.Image, target: FileType) -> Image.Image:
    _, modes = _ENCODERS[target]
    if img.mode in modes:
        return img
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    if has_alpha and "RGBA" in modes:
        return img.convert("RGBA")
    if img.mode in ("RGBA", "LA", "PA") or has_alpha:
        # Flatten onto white so transparent areas do not turn black
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


class ImageConverter:
    supported_category = ConversionCategory.IMAGE
    supported_formats = frozenset(SUPPORTED_FORMATS[ConversionCategory.IMAGE])

    def can_convert(self, source: FileType, target: FileType) -> bool:
        return source in self.supported_formats and target in self.supported_formats

    def convert(self, request: Optional[ConversionRequest]) -> ConversionResult:
        timer = Timer()
        try:
            problem = check_request(request, self.supported_formats, self.supported_category)
            if problem:
                message, error = problem
                logger.warning("Image conversion rejected: %s", message)
                return ConversionResult.failed(message, timer.elapsed, error)

            options = request.options or ImageOptions()
            ensure_output_dir(request.output_path)

            with Image.open(request.input_path) as img:
                img.load()
                out_img = _prepare_mode(img, request.target_format)
                out_img.save(request.output_path, **save_kwargs(request.target_format, options))

            logger.info("Converted %s -> %s", request.input_path, request.output_path)
            return ConversionResult.ok(
                f"Successfully converted image to {request.target_format.name}",
                request.output_path,
                timer.elapsed,
            )
        except Exception as e:
            logger.exception("Image conversion failed for %s: %s", getattr(request, "input_path", None), e)
            return ConversionResult.failed(f"Failed to convert image: {e}", timer.elapsed, e)
