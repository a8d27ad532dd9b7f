"""Shared fixtures: sample media files and a fake ffmpeg that never spawns a process."""

import subprocess
from pathlib import Path

import pytest
from PIL import Image

from fileconv.conversion.ffmpeg import FFmpegLocator
from fileconv.conversion.service import ConversionDispatcher


class FakeFFmpeg:
    """Stands in for subprocess.run inside the ffmpeg module and records every command."""

    def __init__(self, locator: FFmpegLocator):
        self.locator = locator
        self.calls: list[list[str]] = []
        self.returncode = 0
        self.raise_exc = None

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if self.raise_exc is not None:
            raise self.raise_exc
        if self.returncode == 0:
            Path(cmd[-1]).write_bytes(b"converted media")
        return subprocess.CompletedProcess(cmd, self.returncode, stdout="", stderr="boom")


@pytest.fixture(autouse=True)
def no_system_ffmpeg(monkeypatch):
    """Tests never depend on an ffmpeg installed on the host."""
    monkeypatch.setattr("fileconv.conversion.ffmpeg.shutil.which", lambda name: None)


@pytest.fixture
def fake_ffmpeg(tmp_path, monkeypatch):
    exe = tmp_path / "tools" / "ffmpeg"
    exe.parent.mkdir()
    exe.write_bytes(b"")
    fake = FakeFFmpeg(FFmpegLocator(explicit_path=str(exe)))
    monkeypatch.setattr("fileconv.conversion.ffmpeg.subprocess.run", fake)
    return fake


@pytest.fixture
def missing_ffmpeg():
    return FFmpegLocator(auto_download=False)


@pytest.fixture
def dispatcher(fake_ffmpeg):
    return ConversionDispatcher(locator=fake_ffmpeg.locator, max_workers=4)


@pytest.fixture
def jpeg_file(tmp_path):
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (64, 48), (200, 30, 30)).save(path, format="JPEG")
    return path


@pytest.fixture
def rgba_png_file(tmp_path):
    path = tmp_path / "logo.png"
    img = Image.new("RGBA", (40, 30), (0, 120, 255, 0))
    img.paste((255, 255, 0, 255), (10, 10, 30, 20))
    img.save(path, format="PNG")
    return path


@pytest.fixture
def wav_file(tmp_path):
    path = tmp_path / "clip.wav"
    path.write_bytes(b"RIFF....WAVEfmt ")
    return path


@pytest.fixture
def avi_file(tmp_path):
    path = tmp_path / "movie.avi"
    path.write_bytes(b"RIFF....AVI LIST")
    return path
