"""
pytest configuration and fixtures for photoavif tests.
"""

import io
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from PIL import Image

from photoavif.conversion import DecodedImage
from photoavif.errors import EncodeFailed

EXIF_IFD = 0x8769
DATETIME_ORIGINAL = 0x9003
ORIENTATION = 0x0112


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


class FakeConverter:
    """Stands in for AvifConverter where real AVIF encoding is beside the point."""

    def __init__(self, payload: bytes = b"fake avif payload", error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.encoded: List[Tuple[int, int]] = []

    def encode(self, decoded: DecodedImage) -> bytes:
        if self.error is not None:
            raise self.error
        self.encoded.append((decoded.width, decoded.height))
        return self.payload


def photo_bytes(fmt: str = "JPEG", capture: Optional[str] = None, size=(32, 24),
                mode: str = "RGB", orientation: Optional[int] = None,
                color=(200, 120, 40)) -> bytes:
    """Encode a small solid-color image, optionally tagged with DateTimeOriginal."""
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    image = Image.new(mode, size, color)

    params = {}
    if capture is not None or orientation is not None:
        exif = Image.Exif()
        if orientation is not None:
            exif[ORIENTATION] = orientation
        if capture is not None:
            exif[EXIF_IFD] = {DATETIME_ORIGINAL: capture}
        params["exif"] = exif.tobytes()

    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


@pytest.fixture
def make_photo(tmp_path):
    """Helper to write test photos with specific properties."""

    def create_photo(name: str, capture: Optional[str] = None, fmt: Optional[str] = None,
                     mtime: Optional[datetime] = None, base: Optional[Path] = None,
                     **kwargs) -> Path:
        file_path = (base or tmp_path) / name
        file_path.parent.mkdir(parents=True, exist_ok=True)

        if fmt is None:
            fmt = {".png": "PNG", ".tiff": "TIFF"}.get(file_path.suffix.lower(), "JPEG")
        file_path.write_bytes(photo_bytes(fmt=fmt, capture=capture, **kwargs))

        if mtime is not None:
            stamp = mtime.timestamp()
            os.utime(file_path, (stamp, stamp))
        return file_path

    return create_photo


@pytest.fixture
def create_test_files(tmp_path):
    """Helper to create arbitrary files (non-images, corrupt photos)."""

    def create_files(file_specs: List[dict]) -> Path:
        for spec in file_specs:
            file_path = tmp_path / spec['name']
            file_path.parent.mkdir(parents=True, exist_ok=True)

            content = spec.get('content', b'test file content')
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)

        return tmp_path

    return create_files


@pytest.fixture
def fake_converter():
    return FakeConverter()


@pytest.fixture
def cli_runner(capsys):
    """Run the CLI in-process and capture its console output."""

    def run_cli(*args) -> CliResult:
        from photoavif.cli import main

        try:
            exit_code = main([str(a) for a in args])
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0

        captured = capsys.readouterr()
        return CliResult(exit_code=exit_code, output=captured.out, error=captured.err)

    return run_cli


def snapshot_tree(root: Path) -> dict:
    """Map of relative path -> bytes for every file under root."""
    return {p.relative_to(root): p.read_bytes() for p in root.rglob("*") if p.is_file()}
