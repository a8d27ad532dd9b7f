"""Conversion request/result models and per-category encoding options."""
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from fileconv.conversion.formats import ConversionCategory, FileType

DEFAULT_IMAGE_QUALITY = 75
DEFAULT_AUDIO_BITRATE = 128  # kbps
DEFAULT_SAMPLE_RATE = 44100  # Hz
DEFAULT_VIDEO_BITRATE = 1000  # kbps
DEFAULT_FPS = 30


def _require_positive(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class ImageOptions:
    """Encoder settings for images. quality applies to JPEG and WEBP only."""

    quality: int = DEFAULT_IMAGE_QUALITY

    def __post_init__(self):
        _require_positive("quality", self.quality)
        if self.quality > 100:
            raise ValueError(f"quality must be between 1 and 100, got {self.quality}")


@dataclass(frozen=True)
class AudioOptions:
    """bitrate (kbps) is used by lossy targets, sample_rate (Hz) by WAV."""

    bitrate: int = DEFAULT_AUDIO_BITRATE
    sample_rate: int = DEFAULT_SAMPLE_RATE

    def __post_init__(self):
        _require_positive("bitrate", self.bitrate)
        _require_positive("sample_rate", self.sample_rate)


@dataclass(frozen=True)
class VideoOptions:
    """
    Video encoder settings.
    - fps: 0 keeps the source frame rate.
    - width/height: output is resized only when both are set.
    """

    video_bitrate: int = DEFAULT_VIDEO_BITRATE
    audio_bitrate: int = DEFAULT_AUDIO_BITRATE
    fps: int = DEFAULT_FPS
    width: Optional[int] = None
    height: Optional[int] = None

    def __post_init__(self):
        _require_positive("video_bitrate", self.video_bitrate)
        _require_positive("audio_bitrate", self.audio_bitrate)
        if not isinstance(self.fps, int) or isinstance(self.fps, bool) or self.fps < 0:
            raise ValueError(f"fps must be a non-negative integer, got {self.fps!r}")
        if self.width is not None:
            _require_positive("width", self.width)
        if self.height is not None:
            _require_positive("height", self.height)

    @property
    def resize(self) -> Optional[tuple[int, int]]:
        if self.width and self.height:
            return (self.width, self.height)
        return None


ConversionOptions = Union[ImageOptions, AudioOptions, VideoOptions]

OPTIONS_BY_CATEGORY: dict[ConversionCategory, type] = {
    ConversionCategory.IMAGE: ImageOptions,
    ConversionCategory.AUDIO: AudioOptions,
    ConversionCategory.VIDEO: VideoOptions,
}


@dataclass
class ConversionRequest:
    input_path: str
    output_path: str
    target_format: FileType
    options: Optional[ConversionOptions] = None


@dataclass
class ConversionJob:
    """One entry of a batch run; same arguments as ConversionDispatcher.convert_file."""

    input_path: str
    output_path: str
    target_format: Optional[FileType] = None
    options: Optional[ConversionOptions] = None


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one conversion attempt. processing_time is wall time in seconds."""

    success: bool
    message: str
    output_path: str = ""
    processing_time: float = 0.0
    error: Optional[BaseException] = field(default=None, compare=False)

    @classmethod
    def ok(cls, message: str, output_path: str, processing_time: float) -> "ConversionResult":
        return cls(True, message, output_path=output_path, processing_time=processing_time)

    @classmethod
    def failed(
        cls,
        message: str,
        processing_time: float = 0.0,
        error: Optional[BaseException] = None,
    ) -> "ConversionResult":
        return cls(False, message, processing_time=processing_time, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "output_path": self.output_path,
            "processing_time": self.processing_time,
            "error": str(self.error) if self.error is not None else None,
        }
