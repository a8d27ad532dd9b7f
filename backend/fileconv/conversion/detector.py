"""Resolve file types from paths and media categories from file types."""
from pathlib import Path
from typing import Optional, Union

from fileconv.conversion.formats import (
    CATEGORY_BY_TYPE,
    DEFAULT_EXTENSION,
    EXTENSION_TO_TYPE,
    ConversionCategory,
    FileType,
)


class FileTypeDetector:
    """Extension based detection. Stateless; one instance can be shared across threads."""

    @staticmethod
    def detect_file_type(path: Optional[Union[str, Path]]) -> FileType:
        """Map a path's extension (case-insensitive) to a FileType. Never raises."""
        if not path:
            return FileType.UNKNOWN
        ext = Path(str(path)).suffix.lower()
        return EXTENSION_TO_TYPE.get(ext, FileType.UNKNOWN)

    @staticmethod
    def get_category(file_type: FileType) -> ConversionCategory:
        """Category of a known file type. UNKNOWN has no category and raises ValueError."""
        try:
            return CATEGORY_BY_TYPE[file_type]
        except KeyError:
            raise ValueError(f"File type {getattr(file_type, 'value', file_type)!s} has no conversion category") from None

    @staticmethod
    def default_extension(file_type: FileType) -> str:
        try:
            return DEFAULT_EXTENSION[file_type]
        except KeyError:
            raise ValueError(f"File type {getattr(file_type, 'value', file_type)!s} has no extension") from None

    @staticmethod
    def parse_format(name: Optional[str]) -> FileType:
        """Parse a format name or extension ("png", "Mp4", ".jpg") into a FileType; UNKNOWN if unrecognised."""
        name = (name or "").strip().lower()
        if not name:
            return FileType.UNKNOWN
        try:
            file_type = FileType(name)
        except ValueError:
            ext = name if name.startswith(".") else f".{name}"
            return EXTENSION_TO_TYPE.get(ext, FileType.UNKNOWN)
        return file_type
