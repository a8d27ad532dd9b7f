"""Audio conversion through the external ffmpeg binary."""
from typing import Optional

from fileconv.conversion.ffmpeg import FFmpegLocator, audio_args, transcode
from fileconv.conversion.formats import SUPPORTED_FORMATS, ConversionCategory, FileType
from fileconv.conversion.models import AudioOptions, ConversionRequest, ConversionResult


class AudioConverter:
    supported_category = ConversionCategory.AUDIO
    supported_formats = frozenset(SUPPORTED_FORMATS[ConversionCategory.AUDIO])

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
            audio_args,
            AudioOptions(),
        )
