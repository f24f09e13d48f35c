"""
pytest configuration and fixtures for folderize tests.
"""

import io
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

import piexif
import pytest
from PIL import Image


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str
    prompts: List[str] = field(default_factory=list)


def set_times(path: Path, mtime: datetime, atime: Optional[datetime] = None) -> None:
    """Set a file's modification (and access) time from datetimes."""
    atime = atime or mtime
    os.utime(path, (atime.timestamp(), mtime.timestamp()))


def exif_jpeg_bytes(date_original: Optional[str] = None,
                    date_digitized: Optional[str] = None,
                    modify_date: Optional[str] = None) -> bytes:
    """Build a small JPEG carrying the given EXIF date strings."""
    img = Image.new("RGB", (8, 8), color="red")

    zeroth = {}
    exif = {}
    if modify_date:
        zeroth[piexif.ImageIFD.DateTime] = modify_date.encode()
    if date_original:
        exif[piexif.ExifIFD.DateTimeOriginal] = date_original.encode()
    if date_digitized:
        exif[piexif.ExifIFD.DateTimeDigitized] = date_digitized.encode()

    exif_bytes = piexif.dump({"0th": zeroth, "Exif": exif, "GPS": {}, "1st": {},
                              "thumbnail": None})

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", exif=exif_bytes)
    return buffer.getvalue()


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path):
    path = tmp_path / "dest"
    path.mkdir()
    return path


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "log"


@pytest.fixture
def test_config_path(tmp_path):
    """Test-specific config path inside the test's temp directory."""
    return tmp_path / "config" / "config.yml"


@pytest.fixture
def make_exif_jpeg():
    """Write a JPEG with EXIF dates to a path."""

    def make(path: Path, **dates) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(exif_jpeg_bytes(**dates))
        return path

    return make


@pytest.fixture
def create_test_files(source_dir):
    """Helper to create test files with specific properties."""

    def create_files(file_specs: List[dict]) -> Path:
        """Create test files based on specifications.

        Args:
            file_specs: List of dicts with keys:
                - name: path relative to the source directory
                - content: file content (optional)
                - mtime: modification time as datetime (optional)

        Returns:
            Path to directory containing created files
        """
        for spec in file_specs:
            file_path = source_dir / spec['name']
            file_path.parent.mkdir(parents=True, exist_ok=True)

            content = spec.get('content', b'test file content')
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)

            if 'mtime' in spec:
                set_times(file_path, spec['mtime'])

        return source_dir

    return create_files


@pytest.fixture
def cli_runner(monkeypatch):
    """Create a CLI runner that captures output and answers prompts."""

    def run_cli(*args, config_path=None, answers: Iterable[str] = ()):
        """Run folderize CLI with given arguments.

        Args:
            *args: Command line arguments (source, dest, --flags, etc)
            config_path: Optional config path for test isolation
            answers: Replies to confirmation prompts, in order; "n" once exhausted

        Returns:
            CliResult with exit_code, output, and error
        """
        from folderize.cli import main
        from folderize.constants import get_console

        stdout = io.StringIO()
        stderr = io.StringIO()
        replies = list(answers)
        prompts = []

        def mock_input(prompt=""):
            prompts.append(prompt)
            return replies.pop(0) if replies else "n"

        monkeypatch.setattr(get_console(), "input", mock_input, raising=False)
        monkeypatch.setattr(sys, "stdout", stdout)
        monkeypatch.setattr(sys, "stderr", stderr)
        monkeypatch.setattr(sys, "argv", ["folderize"] + [str(a) for a in args])

        try:
            exit_code = main(config_path=config_path)
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0

        return CliResult(exit_code=exit_code, output=stdout.getvalue(),
                         error=stderr.getvalue(), prompts=prompts)

    return run_cli


@pytest.fixture
def assert_file_structure():
    """Helper to assert expected file structure."""

    def check_structure(base_path: Path, expected_structure: dict):
        """Assert that directory has expected structure.

        Args:
            base_path: Root directory to check
            expected_structure: Dict describing expected structure
                e.g., {
                    "2024": {
                        "2024-01": ["file1.jpg", "file2.jpg"],
                        "2024-02": ["file3.jpg"]
                    }
                }
        """
        def check_level(path: Path, structure: dict):
            for name, value in structure.items():
                item_path = path / name
                assert item_path.exists(), f"Expected {item_path} to exist"

                if isinstance(value, dict):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    check_level(item_path, value)
                elif isinstance(value, list):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    actual_files = sorted([f.name for f in item_path.iterdir() if f.is_file()])
                    expected_files = sorted(value)
                    assert actual_files == expected_files, \
                        f"Expected files {expected_files} in {item_path}, got {actual_files}"

        check_level(base_path, expected_structure)

    return check_structure
