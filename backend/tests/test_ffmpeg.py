"""
tests/test_ffmpeg.py — FFmpeg boundary

Covers:
  - codec/bitrate argument building per target format
  - locator search order: explicit path, PATH, bundled directory
  - one-shot acquisition: disabled platforms, primary/fallback download, archive extraction
"""

import http.client
import zipfile
from pathlib import Path

import pytest

from fileconv.conversion import ffmpeg as ffmpeg_mod
from fileconv.conversion.ffmpeg import EXE_SUFFIX, FFmpegLocator, audio_args, video_args
from fileconv.conversion.formats import FileType
from fileconv.conversion.models import AudioOptions, VideoOptions

# ── Argument builders ────────────────────────────────────────────


@pytest.mark.parametrize(
    "target,expected",
    [
        (FileType.MP3, ["-vn", "-c:a", "libmp3lame", "-b:a", "128k"]),
        (FileType.WAV, ["-vn", "-c:a", "pcm_s16le", "-ar", "44100"]),
        (FileType.FLAC, ["-vn", "-c:a", "flac"]),
        (FileType.AAC, ["-vn", "-c:a", "aac", "-b:a", "128k"]),
        (FileType.OGG, ["-vn", "-c:a", "libvorbis", "-b:a", "128k"]),
        (FileType.M4A, ["-vn", "-c:a", "aac", "-b:a", "128k"]),
    ],
)
def test_audio_args_defaults(target, expected):
    assert audio_args(target, AudioOptions()) == expected


def test_audio_args_use_options():
    assert audio_args(FileType.MP3, AudioOptions(bitrate=320)) == ["-vn", "-c:a", "libmp3lame", "-b:a", "320k"]
    assert audio_args(FileType.WAV, AudioOptions(sample_rate=48000))[-1] == "48000"


@pytest.mark.parametrize(
    "target,vcodec,acodec",
    [
        (FileType.MP4, "libx264", "aac"),
        (FileType.AVI, "libx264", "libmp3lame"),
        (FileType.MOV, "libx264", "aac"),
        (FileType.MKV, "libx264", "aac"),
        (FileType.WEBM, "libvpx", "libvorbis"),
        (FileType.WMV, "libx264", "aac"),
        (FileType.FLV, "libx264", "aac"),
    ],
)
def test_video_codec_pairs(target, vcodec, acodec):
    args = video_args(target, VideoOptions())
    assert args[:4] == ["-c:v", vcodec, "-c:a", acodec]


def test_video_args_defaults():
    assert video_args(FileType.MP4, VideoOptions()) == [
        "-c:v", "libx264", "-c:a", "aac",
        "-b:v", "1000k", "-b:a", "128k",
        "-r", "30",
    ]


def test_video_args_resize_and_fps():
    args = video_args(FileType.MKV, VideoOptions(fps=0, width=1280, height=720, video_bitrate=2500))
    assert "-r" not in args
    assert args[-2:] == ["-s", "1280x720"]
    assert "2500k" in args


def test_video_args_single_dimension_is_ignored():
    assert "-s" not in video_args(FileType.MP4, VideoOptions(width=640))


# ── Locator ──────────────────────────────────────────────────────


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_find_prefers_explicit_path(tmp_path, monkeypatch):
    explicit = _touch(tmp_path / "custom" / "ffmpeg")
    _touch(tmp_path / "vendor" / f"ffmpeg{EXE_SUFFIX}")
    monkeypatch.setattr(ffmpeg_mod.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    locator = FFmpegLocator(explicit_path=str(explicit), bundled_dir=tmp_path / "vendor")
    assert locator.find() == explicit


def test_find_uses_system_path_before_bundled(tmp_path, monkeypatch):
    _touch(tmp_path / "vendor" / f"ffmpeg{EXE_SUFFIX}")
    monkeypatch.setattr(ffmpeg_mod.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    locator = FFmpegLocator(bundled_dir=tmp_path / "vendor")
    assert locator.find() == Path("/usr/bin/ffmpeg")


def test_find_falls_back_to_bundled(tmp_path):
    bundled = _touch(tmp_path / "vendor" / f"ffmpeg{EXE_SUFFIX}")
    locator = FFmpegLocator(explicit_path=str(tmp_path / "nope"), bundled_dir=tmp_path / "vendor")
    assert locator.find() == bundled
    assert locator.ensure()
    assert locator.executable() == bundled


def test_nothing_found(tmp_path):
    locator = FFmpegLocator(bundled_dir=tmp_path / "vendor")
    assert locator.find() is None
    assert not locator.is_available()
    with pytest.raises(FileNotFoundError):
        locator.executable()


def test_ensure_without_auto_download_attempts_once(tmp_path, monkeypatch):
    downloads = []
    monkeypatch.setattr(ffmpeg_mod, "_download_file", lambda *a: downloads.append(a))
    locator = FFmpegLocator(bundled_dir=tmp_path / "vendor", auto_download=False, download_urls=["https://a"])

    assert not locator.ensure()
    assert locator.acquisition_attempted
    assert not locator.ensure()
    assert downloads == []


def _write_archive(dest: Path, entries: dict[str, bytes]) -> None:
    with zipfile.ZipFile(dest, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)


def test_download_falls_back_to_secondary_url(tmp_path, monkeypatch):
    attempts = []

    def fake_download(url, dest, timeout):
        attempts.append(url)
        if url == "https://primary/ffmpeg.zip":
            raise OSError("404")
        _write_archive(
            dest,
            {
                f"ffmpeg-build/doc/ffmpeg{EXE_SUFFIX}": b"wrong one",
                f"ffmpeg-build/bin/ffmpeg{EXE_SUFFIX}": b"ffmpeg binary",
                f"ffmpeg-build/bin/ffprobe{EXE_SUFFIX}": b"ffprobe binary",
            },
        )

    monkeypatch.setattr(ffmpeg_mod, "_download_file", fake_download)
    vendor = tmp_path / "vendor"
    locator = FFmpegLocator(
        bundled_dir=vendor,
        auto_download=True,
        download_urls=["https://primary/ffmpeg.zip", "https://fallback/ffmpeg.zip"],
    )

    assert locator.ensure()
    assert attempts == ["https://primary/ffmpeg.zip", "https://fallback/ffmpeg.zip"]
    assert locator.executable() == vendor / f"ffmpeg{EXE_SUFFIX}"
    assert (vendor / f"ffmpeg{EXE_SUFFIX}").read_bytes() == b"ffmpeg binary"
    assert (vendor / f"ffprobe{EXE_SUFFIX}").read_bytes() == b"ffprobe binary"
    assert not (vendor / "ffmpeg.zip").exists()


def test_failed_download_is_not_retried(tmp_path, monkeypatch):
    attempts = []

    def failing_download(url, dest, timeout):
        attempts.append(url)
        raise OSError("network down")

    monkeypatch.setattr(ffmpeg_mod, "_download_file", failing_download)
    locator = FFmpegLocator(
        bundled_dir=tmp_path / "vendor",
        auto_download=True,
        download_urls=["https://primary", "https://fallback"],
    )

    assert not locator.ensure()
    assert not locator.ensure()
    assert attempts == ["https://primary", "https://fallback"]


@pytest.mark.parametrize(
    "error",
    [http.client.IncompleteRead(b"partial"), ValueError("unknown url type: 'ftp//x'")],
)
def test_non_oserror_download_failure_tries_fallback(tmp_path, monkeypatch, error):
    attempts = []

    def flaky_download(url, dest, timeout):
        attempts.append(url)
        if url == "https://primary":
            raise error
        _write_archive(dest, {f"bin/ffmpeg{EXE_SUFFIX}": b"ffmpeg binary"})

    monkeypatch.setattr(ffmpeg_mod, "_download_file", flaky_download)
    locator = FFmpegLocator(
        bundled_dir=tmp_path / "vendor",
        auto_download=True,
        download_urls=["https://primary", "https://fallback"],
    )

    assert locator.ensure()
    assert attempts == ["https://primary", "https://fallback"]


def test_archive_without_ffmpeg(tmp_path, monkeypatch):
    monkeypatch.setattr(
        ffmpeg_mod,
        "_download_file",
        lambda url, dest, timeout: _write_archive(dest, {"readme.txt": b"hello"}),
    )
    locator = FFmpegLocator(bundled_dir=tmp_path / "vendor", auto_download=True, download_urls=["https://a"])
    assert not locator.ensure()


def test_corrupt_archive(tmp_path, monkeypatch):
    monkeypatch.setattr(
        ffmpeg_mod,
        "_download_file",
        lambda url, dest, timeout: dest.write_bytes(b"not a zip"),
    )
    locator = FFmpegLocator(bundled_dir=tmp_path / "vendor", auto_download=True, download_urls=["https://a"])
    assert not locator.ensure()
    assert not (tmp_path / "vendor" / "ffmpeg.zip").exists()


def test_status(tmp_path):
    bundled = _touch(tmp_path / "vendor" / f"ffmpeg{EXE_SUFFIX}")
    status = FFmpegLocator(bundled_dir=tmp_path / "vendor").status()
    assert status["available"] is True
    assert status["path"] == str(bundled)


def test_run_ffmpeg_command_shape(fake_ffmpeg, tmp_path):
    result = ffmpeg_mod.run_ffmpeg(fake_ffmpeg.locator, "in.wav", str(tmp_path / "out.mp3"), ["-c:a", "libmp3lame"])
    assert result.returncode == 0
    cmd = fake_ffmpeg.calls[0]
    assert cmd[1:4] == ["-y", "-i", "in.wav"]
    assert cmd[4:6] == ["-c:a", "libmp3lame"]
    assert cmd[-1] == str(tmp_path / "out.mp3")
