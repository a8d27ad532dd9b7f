"""Routes conversion requests to the image, audio or video converter and runs batches in parallel."""
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

from fileconv.config import MAX_WORKERS
from fileconv.conversion.audio import AudioConverter
from fileconv.conversion.detector import FileTypeDetector
from fileconv.conversion.ffmpeg import FFmpegLocator
from fileconv.conversion.formats import SUPPORTED_FORMATS, ConversionCategory, FileType
from fileconv.conversion.image import ImageConverter
from fileconv.conversion.models import (
    ConversionJob,
    ConversionOptions,
    ConversionRequest,
    ConversionResult,
)
from fileconv.conversion.validation import Timer
from fileconv.conversion.video import VideoConverter

logger = logging.getLogger("fileconv.service")


class Converter(Protocol):
    supported_category: ConversionCategory

    def can_convert(self, source: FileType, target: FileType) -> bool: ...

    def convert(self, request: Optional[ConversionRequest]) -> ConversionResult: ...


class ConversionDispatcher:
    """Detects formats, enforces category rules and delegates to the converter registered for the category."""

    def __init__(
        self,
        detector: Optional[FileTypeDetector] = None,
        locator: Optional[FFmpegLocator] = None,
        converters: Optional[Iterable[Converter]] = None,
        max_workers: int = MAX_WORKERS,
    ):
        self.detector = detector or FileTypeDetector()
        self.locator = locator or FFmpegLocator.from_config()
        self.max_workers = max(1, max_workers)
        self._converters: dict[ConversionCategory, Converter] = {}
        if converters is None:
            converters = (
                ImageConverter(),
                AudioConverter(self.locator),
                VideoConverter(self.locator),
            )
        for converter in converters:
            self.register(converter)
        logger.info(
            "ConversionDispatcher initialized with converters=%s max_workers=%s",
            ", ".join(c.value for c in self._converters),
            self.max_workers,
        )

    def register(self, converter: Converter) -> None:
        self._converters[converter.supported_category] = converter

    def convert_file(
        self,
        input_path: Optional[str],
        output_path: Optional[str],
        target_format: Optional[FileType] = None,
        options: Optional[ConversionOptions] = None,
    ) -> ConversionResult:
        """Convert one file. Always returns a result; no processing error escapes."""
        timer = Timer()
        if not input_path or not output_path:
            return ConversionResult.failed(
                "Invalid input or output path",
                timer.elapsed,
                ValueError("Input and output paths cannot be empty"),
            )
        input_path, output_path = str(input_path), str(output_path)
        if not os.path.isfile(input_path):
            return ConversionResult.failed(
                f"Input file does not exist: {input_path}",
                timer.elapsed,
                FileNotFoundError(input_path),
            )
        try:
            source = self.detector.detect_file_type(input_path)
            if source == FileType.UNKNOWN:
                return ConversionResult.failed(
                    f"Unsupported file type: {Path(input_path).suffix or input_path}", timer.elapsed
                )

            target = target_format if target_format is not None else self.detector.detect_file_type(output_path)
            if target == FileType.UNKNOWN:
                return ConversionResult.failed("Unable to determine target file format from output path", timer.elapsed)

            source_category = self.detector.get_category(source)
            target_category = self.detector.get_category(target)
            if source_category != target_category:
                return ConversionResult.failed(
                    "Cannot convert between different media categories: "
                    f"{source_category.value} to {target_category.value}",
                    timer.elapsed,
                )

            converter = self._converters.get(source_category)
            if converter is None:
                logger.error("No converter registered for %s", source_category.value)
                return ConversionResult.failed(
                    f"No converter available for category: {source_category.value}", timer.elapsed
                )

            if not converter.can_convert(source, target):
                return ConversionResult.failed(
                    f"Conversion from {source.name} to {target.name} is not supported", timer.elapsed
                )

            request = ConversionRequest(
                input_path=input_path,
                output_path=output_path,
                target_format=target,
                options=options,
            )
            logger.info("Converting %s (%s) -> %s (%s)", input_path, source.name, output_path, target.name)
            return converter.convert(request)
        except Exception as e:
            logger.exception("Conversion failed for %s: %s", input_path, e)
            return ConversionResult.failed(f"Conversion failed: {e}", timer.elapsed, e)

    def convert_many(
        self,
        jobs: list[ConversionJob],
        max_workers: Optional[int] = None,
        on_result: Optional[Callable[[ConversionJob, ConversionResult], None]] = None,
    ) -> list[ConversionResult]:
        """Convert jobs in parallel with at most max_workers in flight. Results follow job order."""
        if not jobs:
            return []
        workers = max(1, max_workers or self.max_workers)
        results: list[Optional[ConversionResult]] = [None] * len(jobs)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    self.convert_file,
                    job.input_path,
                    job.output_path,
                    job.target_format,
                    job.options,
                ): index
                for index, job in enumerate(jobs)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    logger.exception("Job failed for %s: %s", jobs[index].input_path, e)
                    result = ConversionResult.failed(f"Conversion failed: {e}", error=e)
                results[index] = result
                if on_result:
                    try:
                        on_result(jobs[index], result)
                    except Exception:
                        logger.exception("on_result callback raised for %s", jobs[index].input_path)
        succeeded = sum(1 for r in results if r and r.success)
        logger.info("Batch finished: %s/%s succeeded", succeeded, len(jobs))
        return results

    @staticmethod
    def get_supported_formats(category: ConversionCategory) -> list[FileType]:
        return list(SUPPORTED_FORMATS.get(category, ()))

    @staticmethod
    def is_format_supported(file_type: FileType) -> bool:
        if file_type == FileType.UNKNOWN:
            return False
        return any(file_type in formats for formats in SUPPORTED_FORMATS.values())


# Singleton
_conversion_service: Optional[ConversionDispatcher] = None


def get_conversion_service() -> ConversionDispatcher:
    global _conversion_service
    if _conversion_service is None:
        _conversion_service = ConversionDispatcher()
    return _conversion_service
