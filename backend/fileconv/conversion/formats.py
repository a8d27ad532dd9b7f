"""Supported file types, their media categories and extension mappings."""
from enum import Enum


class ConversionCategory(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class FileType(str, Enum):
    UNKNOWN = "unknown"

    # Image formats
    JPEG = "jpeg"
    PNG = "png"
    BMP = "bmp"
    GIF = "gif"
    WEBP = "webp"
    TIFF = "tiff"

    # Audio formats
    MP3 = "mp3"
    WAV = "wav"
    FLAC = "flac"
    AAC = "aac"
    OGG = "ogg"
    M4A = "m4a"

    # Video formats
    MP4 = "mp4"
    AVI = "avi"
    MOV = "mov"
    MKV = "mkv"
    WEBM = "webm"
    WMV = "wmv"
    FLV = "flv"


# Ordered per category; UNKNOWN never appears here.
SUPPORTED_FORMATS: dict[ConversionCategory, tuple[FileType, ...]] = {
    ConversionCategory.IMAGE: (
        FileType.JPEG, FileType.PNG, FileType.BMP,
        FileType.GIF, FileType.WEBP, FileType.TIFF,
    ),
    ConversionCategory.AUDIO: (
        FileType.MP3, FileType.WAV, FileType.FLAC,
        FileType.AAC, FileType.OGG, FileType.M4A,
    ),
    ConversionCategory.VIDEO: (
        FileType.MP4, FileType.AVI, FileType.MOV,
        FileType.MKV, FileType.WEBM, FileType.WMV, FileType.FLV,
    ),
}

CATEGORY_BY_TYPE: dict[FileType, ConversionCategory] = {
    file_type: category
    for category, file_types in SUPPORTED_FORMATS.items()
    for file_type in file_types
}

# Keys are lowercase; lookups must lowercase the suffix first.
EXTENSION_TO_TYPE: dict[str, FileType] = {
    ".jpg": FileType.JPEG,
    ".jpeg": FileType.JPEG,
    ".png": FileType.PNG,
    ".bmp": FileType.BMP,
    ".gif": FileType.GIF,
    ".webp": FileType.WEBP,
    ".tiff": FileType.TIFF,
    ".tif": FileType.TIFF,
    ".mp3": FileType.MP3,
    ".wav": FileType.WAV,
    ".flac": FileType.FLAC,
    ".aac": FileType.AAC,
    ".ogg": FileType.OGG,
    ".m4a": FileType.M4A,
    ".mp4": FileType.MP4,
    ".avi": FileType.AVI,
    ".mov": FileType.MOV,
    ".mkv": FileType.MKV,
    ".webm": FileType.WEBM,
    ".wmv": FileType.WMV,
    ".flv": FileType.FLV,
}

DEFAULT_EXTENSION: dict[FileType, str] = {
    FileType.JPEG: ".jpg",
    FileType.PNG: ".png",
    FileType.BMP: ".bmp",
    FileType.GIF: ".gif",
    FileType.WEBP: ".webp",
    FileType.TIFF: ".tiff",
    FileType.MP3: ".mp3",
    FileType.WAV: ".wav",
    FileType.FLAC: ".flac",
    FileType.AAC: ".aac",
    FileType.OGG: ".ogg",
    FileType.M4A: ".m4a",
    FileType.MP4: ".mp4",
    FileType.AVI: ".avi",
    FileType.MOV: ".mov",
    FileType.MKV: ".mkv",
    FileType.WEBM: ".webm",
    FileType.WMV: ".wmv",
    FileType.FLV: ".flv",
}


def extensions_for(file_type: FileType) -> list[str]:
    """All extensions that map to file_type, default extension first."""
    default = DEFAULT_EXTENSION.get(file_type)
    others = sorted(ext for ext, ft in EXTENSION_TO_TYPE.items() if ft == file_type and ext != default)
    return ([default] if default else []) + others
