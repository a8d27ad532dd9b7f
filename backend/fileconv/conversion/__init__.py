from .detector import FileTypeDetector
from .formats import ConversionCategory, FileType
from .models import (
    AudioOptions,
    ConversionJob,
    ConversionRequest,
    ConversionResult,
    ImageOptions,
    VideoOptions,
)
from .service import ConversionDispatcher, get_conversion_service

__all__ = [
    "AudioOptions",
    "ConversionCategory",
    "ConversionDispatcher",
    "ConversionJob",
    "ConversionRequest",
    "ConversionResult",
    "FileType",
    "FileTypeDetector",
    "ImageOptions",
    "VideoOptions",
    "get_conversion_service",
]
