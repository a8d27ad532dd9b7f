"""
FFmpeg boundary for audio and video conversion.

FFmpegLocator holds everything needed to find (or fetch once) the ffmpeg binary.
It is a plain object handed to the converters, so each dispatcher and each test
owns its own lookup state.
"""
import http.client
import logging
import os
import shutil
import subprocess
import sys
import threading
import urllib.request
import zipfile
from pathlib import Path
from typing import Callable, Optional, Sequence

from fileconv import config as app_config
from fileconv.conversion.formats import ConversionCategory, FileType
from fileconv.conversion.models import AudioOptions, ConversionOptions, ConversionRequest, ConversionResult, VideoOptions
from fileconv.conversion.validation import Timer, check_request, ensure_output_dir

logger = logging.getLogger("fileconv.ffmpeg")

EXE_SUFFIX = ".exe" if sys.platform == "win32" else ""

AUDIO_CODECS: dict[FileType, str] = {
    FileType.MP3: "libmp3lame",
    FileType.WAV: "pcm_s16le",
    FileType.FLAC: "flac",
    FileType.AAC: "aac",
    FileType.OGG: "libvorbis",
    FileType.M4A: "aac",
}

# target -> (video codec, audio codec)
VIDEO_CODECS: dict[FileType, tuple[str, str]] = {
    FileType.MP4: ("libx264", "aac"),
    FileType.AVI: ("libx264", "libmp3lame"),
    FileType.MOV: ("libx264", "aac"),
    FileType.MKV: ("libx264", "aac"),
    FileType.WEBM: ("libvpx", "libvorbis"),
    FileType.WMV: ("libx264", "aac"),
    FileType.FLV: ("libx264", "aac"),
}


def audio_args(target: FileType, options: AudioOptions) -> list[str]:
    """Codec arguments for an audio-only output."""
    codec = AUDIO_CODECS[target]
    args = ["-vn", "-c:a", codec]
    if target == FileType.WAV:
        args += ["-ar", str(options.sample_rate)]
    elif target != FileType.FLAC:
        args += ["-b:a", f"{options.bitrate}k"]
    return args


def video_args(target: FileType, options: VideoOptions) -> list[str]:
    """Codec, bitrate, frame rate and optional resize arguments for a video output."""
    video_codec, audio_codec = VIDEO_CODECS[target]
    args = [
        "-c:v", video_codec,
        "-c:a", audio_codec,
        "-b:v", f"{options.video_bitrate}k",
        "-b:a", f"{options.audio_bitrate}k",
    ]
    if options.fps > 0:
        args += ["-r", str(options.fps)]
    if options.resize:
        width, height = options.resize
        args += ["-s", f"{width}x{height}"]
    return args


def installation_instructions() -> str:
    return (
        "To install FFmpeg manually:\n"
        "  1. Download a build from https://ffmpeg.org/download.html\n"
        "  2. Put the folder containing the ffmpeg binary on your PATH,\n"
        "     or set FFMPEG_PATH to the binary, or copy it into FFMPEG_DIR.\n"
        "Package managers: apt install ffmpeg | brew install ffmpeg | winget install FFmpeg | choco install ffmpeg"
    )


class FFmpegLocator:
    """Finds the ffmpeg binary and, where allowed, downloads it at most once."""

    def __init__(
        self,
        explicit_path: Optional[str] = None,
        bundled_dir: Optional[Path] = None,
        auto_download: bool = False,
        download_urls: Sequence[str] = (),
        download_timeout: int = 600,
        run_timeout: Optional[int] = None,
    ):
        self.explicit_path = explicit_path
        self.bundled_dir = Path(bundled_dir) if bundled_dir else None
        self.auto_download = auto_download
        self.download_urls = [u for u in download_urls if u]
        self.download_timeout = download_timeout
        self.run_timeout = run_timeout
        self._lock = threading.Lock()
        self._resolved: Optional[Path] = None
        self._acquisition_attempted = False

    @classmethod
    def from_config(cls) -> "FFmpegLocator":
        return cls(
            explicit_path=app_config.FFMPEG_PATH,
            bundled_dir=app_config.FFMPEG_DIR,
            auto_download=app_config.FFMPEG_AUTO_DOWNLOAD,
            download_urls=(app_config.FFMPEG_DOWNLOAD_URL, app_config.FFMPEG_FALLBACK_URL),
            download_timeout=app_config.FFMPEG_DOWNLOAD_TIMEOUT,
            run_timeout=app_config.FFMPEG_TIMEOUT,
        )

    @property
    def bundled_executable(self) -> Optional[Path]:
        if self.bundled_dir is None:
            return None
        return self.bundled_dir / f"ffmpeg{EXE_SUFFIX}"

    @property
    def acquisition_attempted(self) -> bool:
        return self._acquisition_attempted

    def find(self) -> Optional[Path]:
        """Explicit path, then PATH, then the bundled directory. None if ffmpeg is nowhere."""
        if self._resolved is not None and self._resolved.is_file():
            return self._resolved
        if self.explicit_path and os.path.isfile(self.explicit_path):
            return Path(self.explicit_path)
        system_ffmpeg = shutil.which("ffmpeg")
        if system_ffmpeg:
            return Path(system_ffmpeg)
        bundled = self.bundled_executable
        if bundled is not None and bundled.is_file():
            return bundled
        return None

    def is_available(self) -> bool:
        return self.find() is not None

    def ensure(self) -> bool:
        """Return True when ffmpeg can be run, downloading it on the first miss if allowed."""
        with self._lock:
            path = self.find()
            if path is not None:
                self._resolved = path
                return True
            if self._acquisition_attempted:
                return False
            self._acquisition_attempted = True
            if not self.auto_download:
                logger.warning("ffmpeg not found and automatic download is disabled on %s", sys.platform)
                return False
            path = self._acquire()
            if path is None:
                return False
            self._resolved = path
            logger.info("ffmpeg installed at %s", path)
            return True

    def executable(self) -> Path:
        path = self._resolved or self.find()
        if path is None:
            raise FileNotFoundError("ffmpeg executable not found")
        return path

    def status(self) -> dict:
        path = self.find()
        return {
            "available": path is not None,
            "path": str(path) if path else None,
            "auto_download": self.auto_download,
            "acquisition_attempted": self._acquisition_attempted,
        }

    def _acquire(self) -> Optional[Path]:
        if self.bundled_dir is None or not self.download_urls:
            logger.warning("ffmpeg download not configured")
            return None
        try:
            self.bundled_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Could not create %s: %s", self.bundled_dir, e)
            return None
        archive = self.bundled_dir / "ffmpeg.zip"
        try:
            for url in self.download_urls:
                try:
                    logger.info("Downloading ffmpeg from %s", url)
                    _download_file(url, archive, self.download_timeout)
                    break
                except (OSError, ValueError, http.client.HTTPException) as e:
                    logger.warning("ffmpeg download from %s failed: %s", url, e)
                    archive.unlink(missing_ok=True)
            else:
                return None
            return _extract_binaries(archive, self.bundled_dir)
        except (zipfile.BadZipFile, OSError) as e:
            logger.error("Could not extract ffmpeg from %s: %s", archive, e)
            return None
        finally:
            archive.unlink(missing_ok=True)


def _download_file(url: str, dest_path: Path, timeout: int) -> None:
    request = urllib.request.Request(url, headers={"User-Agent": "fileconv/1.0"})
    with urllib.request.urlopen(request, timeout=timeout) as response:
        with open(dest_path, "wb") as f:
            shutil.copyfileobj(response, f, 1024 * 1024)


def _pick_entry(names: list[str], binary: str) -> Optional[str]:
    candidates = [n for n in names if Path(n).name.lower() == binary]
    for name in candidates:
        if "bin" in Path(name).parts[:-1]:
            return name
    return candidates[0] if candidates else None


def _extract_binaries(archive: Path, dest_dir: Path) -> Optional[Path]:
    """Extract ffmpeg (and ffprobe when present) flat into dest_dir; return the ffmpeg path."""
    extracted: Optional[Path] = None
    with zipfile.ZipFile(archive) as zf:
        names = zf.namelist()
        for tool in ("ffmpeg", "ffprobe"):
            binary = f"{tool}{EXE_SUFFIX}"
            entry = _pick_entry(names, binary)
            if entry is None:
                if tool == "ffmpeg":
                    logger.error("No %s found in downloaded archive", binary)
                    return None
                continue
            target = dest_dir / binary
            with zf.open(entry) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
            if os.name != "nt":
                target.chmod(0o755)
            if tool == "ffmpeg":
                extracted = target
    return extracted


def run_ffmpeg(locator: FFmpegLocator, input_path: str, output_path: str, args: list[str]) -> subprocess.CompletedProcess:
    """Run one ffmpeg invocation, overwriting output_path. The exit code is the only success signal."""
    cmd = [str(locator.executable()), "-y", "-i", str(input_path), *args, str(output_path)]
    logger.debug("Running %s", " ".join(cmd))
    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=locator.run_timeout,
    )
    if result.returncode != 0:
        logger.debug("ffmpeg stderr for %s: %s", input_path, result.stderr)
    return result


def transcode(
    locator: FFmpegLocator,
    request: Optional[ConversionRequest],
    supported: frozenset,
    category: ConversionCategory,
    build_args: Callable[[FileType, ConversionOptions], list[str]],
    default_options: ConversionOptions,
) -> ConversionResult:
    """
    Shared convert() body of the ffmpeg-backed converters: validate, make sure
    ffmpeg is there, run it once and wrap the outcome in a ConversionResult.
    """
    timer = Timer()
    label = category.value
    try:
        problem = check_request(request, supported, category)
        if problem:
            message, error = problem
            logger.warning("%s conversion rejected: %s", label.capitalize(), message)
            return ConversionResult.failed(message, timer.elapsed, error)

        if not locator.ensure():
            return ConversionResult.failed(
                "FFmpeg is not available. Install FFmpeg or allow it to be downloaded automatically.",
                timer.elapsed,
            )

        options = request.options or default_options
        ensure_output_dir(request.output_path)
        result = run_ffmpeg(locator, request.input_path, request.output_path, build_args(request.target_format, options))
        if result.returncode != 0:
            logger.error("ffmpeg exited with %s for %s", result.returncode, request.input_path)
            return ConversionResult.failed(f"FFmpeg conversion failed (exit code {result.returncode})", timer.elapsed)

        logger.info("Converted %s %s -> %s", label, request.input_path, request.output_path)
        return ConversionResult.ok(
            f"Successfully converted {label} to {request.target_format.name}",
            request.output_path,
            timer.elapsed,
        )
    except Exception as e:
        logger.exception("%s conversion failed for %s: %s", label.capitalize(), getattr(request, "input_path", None), e)
        return ConversionResult.failed(f"Failed to convert {label}: {e}", timer.elapsed, e)
