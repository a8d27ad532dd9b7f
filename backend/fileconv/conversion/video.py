"""Video conversion through the external ffmpeg binary."""
from typing import Optional

from fileconv.conversion.ffmpeg import FFmpegLocator, transcode, video_args
from fileconv.conversion.formats import SUPPORTED_FORMATS, ConversionCategory, FileType
from fileconv.conversion.models import ConversionRequest, ConversionResult, VideoOptions


class VideoConverter:
    """H.264 (VP8 for WEBM) video with AAC, MP3 or Vorbis audio depending on the container."""

    supported_category = ConversionCategory.VIDEO
    supported_formats = frozenset(SUPPORTED_FORMATS[ConversionCategory.VIDEO])

    def __init__(self, locator: FFmpegLocator):
        self.locator = locator

    def can_convert(self, source: FileType, target: FileType) -> bool:
        return source in self.supported_formats and target in self.supported_formats

    def convert(self, request: Optional[ConversionRequest]) -> ConversionResult:
        return transcode(
            self.locator,
            request,
            self.supported_formats,
            self.supported_category,
            video_args,
            VideoOptions(),
        )
