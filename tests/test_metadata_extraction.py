"""
Test embedded metadata extraction with Pillow and the exiftool fallback.
"""

import json
import subprocess
from datetime import datetime

import pytest
from PIL import Image

import folderize.metadata as metadata_module
from folderize.metadata import extract
from folderize.timestamps import (CREATE_DATE, DATE_TIME_DIGITIZED, DATE_TIME_ORIGINAL,
                                  MODIFY_DATE)


@pytest.fixture
def no_exiftool(monkeypatch):
    monkeypatch.setattr(metadata_module, "exiftool_available", False)


class TestPillowExtraction:
    """Test reading EXIF dates from images Pillow understands."""

    def test_reads_all_exif_date_fields(self, tmp_path, make_exif_jpeg):
        photo = make_exif_jpeg(tmp_path / "photo.jpg",
                               date_original="2021:05:03 14:22:01",
                               date_digitized="2021:05:04 08:00:00",
                               modify_date="2022:01:02 03:04:05")

        metadata = extract(photo)

        assert metadata is not None
        assert metadata.reader == "pillow"
        assert metadata.get(DATE_TIME_ORIGINAL) == datetime(2021, 5, 3, 14, 22, 1)
        assert metadata.get(DATE_TIME_DIGITIZED) == datetime(2021, 5, 4, 8, 0, 0)
        assert metadata.get(MODIFY_DATE) == datetime(2022, 1, 2, 3, 4, 5)
        assert metadata.get(CREATE_DATE) is None
        assert not metadata.has_errors

    def test_modify_date_only(self, tmp_path, make_exif_jpeg):
        photo = make_exif_jpeg(tmp_path / "edited.jpg", modify_date="2019:12:31 23:59:59")

        metadata = extract(photo)

        assert metadata is not None
        assert metadata.dates == {MODIFY_DATE: datetime(2019, 12, 31, 23, 59, 59)}

    def test_placeholder_date_is_recorded_as_error(self, tmp_path, make_exif_jpeg):
        """Cameras without a clock write all zeros; that is not a date."""
        photo = make_exif_jpeg(tmp_path / "noclock.jpg",
                               date_original="0000:00:00 00:00:00",
                               date_digitized="2020:07:01 12:00:00")

        metadata = extract(photo)

        assert metadata is not None
        assert DATE_TIME_ORIGINAL not in metadata.dates
        assert metadata.get(DATE_TIME_DIGITIZED) == datetime(2020, 7, 1, 12, 0, 0)
        assert metadata.has_errors
        assert any(DATE_TIME_ORIGINAL in error for error in metadata.errors)

    def test_image_without_exif_returns_none(self, tmp_path):
        plain = tmp_path / "plain.png"
        Image.new("RGB", (4, 4)).save(plain)

        assert extract(plain) is None


class TestUnsupportedFiles:
    """Test that extraction failures are reported as absence, never raised."""

    def test_text_file_returns_none(self, tmp_path, no_exiftool):
        notes = tmp_path / "notes.txt"
        notes.write_text("not an image")

        assert extract(notes) is None

    def test_truncated_jpeg_returns_none(self, tmp_path, no_exiftool):
        broken = tmp_path / "broken.jpg"
        broken.write_bytes(b"\xff\xd8\xff\xe1\x00\x10Exif\x00\x00garbage")

        assert extract(broken) is None

    def test_missing_file_returns_none(self, tmp_path):
        assert extract(tmp_path / "missing.jpg") is None

    def test_extract_does_not_modify_file(self, tmp_path, make_exif_jpeg):
        photo = make_exif_jpeg(tmp_path / "photo.jpg", date_original="2021:05:03 14:22:01")
        before = photo.read_bytes()
        mtime_before = photo.stat().st_mtime_ns

        extract(photo)

        assert photo.read_bytes() == before
        assert photo.stat().st_mtime_ns == mtime_before


class TestExiftoolFallback:
    """Test the exiftool path used for formats Pillow cannot open."""

    def _fake_run(self, payload):
        def run(cmd, **kwargs):
            assert cmd[0] == "exiftool"
            return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(payload), stderr="")
        return run

    def test_maps_group_tags_to_fields(self, tmp_path, monkeypatch):
        video = tmp_path / "clip.mov"
        video.write_bytes(b"\x00\x00\x00\x14ftypqt  ")
        monkeypatch.setattr(metadata_module, "exiftool_available", True)
        monkeypatch.setattr(metadata_module.subprocess, "run", self._fake_run([{
            "SourceFile": str(video),
            "QuickTime:CreateDate": "2018:08:09 10:11:12",
            "QuickTime:ModifyDate": "2018:08:10 10:11:12",
        }]))

        metadata = extract(video)

        assert metadata is not None
        assert metadata.reader == "exiftool"
        assert metadata.get(CREATE_DATE) == datetime(2018, 8, 9, 10, 11, 12)
        assert metadata.get(MODIFY_DATE) == datetime(2018, 8, 10, 10, 11, 12)
        assert metadata.get(DATE_TIME_ORIGINAL) is None

    def test_no_date_tags_returns_none(self, tmp_path, monkeypatch):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"not really a video")
        monkeypatch.setattr(metadata_module, "exiftool_available", True)
        monkeypatch.setattr(metadata_module.subprocess, "run",
                            self._fake_run([{"SourceFile": str(video)}]))

        assert extract(video) is None

    def test_exiftool_error_returns_none(self, tmp_path, monkeypatch):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"not really a video")

        def failing_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(1, cmd)

        monkeypatch.setattr(metadata_module, "exiftool_available", True)
        monkeypatch.setattr(metadata_module.subprocess, "run", failing_run)

        assert extract(video) is None
