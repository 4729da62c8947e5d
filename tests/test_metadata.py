from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

import photo_sequencer.metadata.extract as extract_module
from photo_sequencer.metadata.extract import MetadataExtractor, lookup_with_default, no_timestamp

BST = timezone(timedelta(hours=1))


# Mock MediaInfo class structure
class MockTrack:
    def __init__(self, **kwargs):
        self.track_type = "General"
        for k, v in kwargs.items():
            setattr(self, k, v)


def mock_mediainfo(**fields):
    class MockMediaInfo:
        def __init__(self, tracks):
            self.tracks = tracks

        @classmethod
        def parse(cls, path):
            return cls([MockTrack(track_type="Video"), MockTrack(**fields)])
    return MockMediaInfo


def mock_exif(monkeypatch, tags):
    monkeypatch.setattr(extract_module.exifread, "process_file", lambda f, details=False: tags)


@pytest.fixture
def jpg(tmp_path):
    p = tmp_path / "photo.jpg"
    p.write_bytes(b"jpeg")
    return p


def test_lookup_with_default():
    lookup = lookup_with_default({"a": 1}, 0)
    assert lookup("a") == 1
    assert lookup("b") == 0


def test_unsupported_extension_has_no_timestamp(tmp_path):
    p = tmp_path / "notes.txt"
    p.write_text("x")
    assert MetadataExtractor().resolve_capture_timestamp(p) is None
    assert no_timestamp(p) is None


def test_extra_extractors_are_merged(tmp_path):
    when = datetime(2019, 3, 3, 3, 3, 3, tzinfo=timezone.utc)
    extractor = MetadataExtractor(extra_extractors={".CR2": lambda p: when})

    assert extractor.resolve_capture_timestamp(tmp_path / "raw.cr2") == when
    # Built-in readers stay registered
    assert extractor.extractors[".jpg"] == extractor.get_exif_timestamp


def test_failing_extra_extractor_is_contained(tmp_path, caplog):
    def broken(path):
        raise OSError("cannot open")
    extractor = MetadataExtractor(extra_extractors={".cr2": broken})

    assert extractor.resolve_capture_timestamp(tmp_path / "raw.cr2") is None
    assert "Metadata reader failed" in caplog.text


def test_time_offset_applies_to_metadata(tmp_path):
    when = datetime(2004, 1, 1, tzinfo=timezone.utc)
    extractor = MetadataExtractor(extra_extractors={".jpg": lambda p: when}, time_offset=3600)
    assert extractor.resolve_capture_timestamp(tmp_path / "a.jpg") == when + timedelta(hours=1)


def test_exif_with_offset_tag(monkeypatch, jpg):
    mock_exif(monkeypatch, {
        "EXIF DateTimeOriginal": "2018:07:31 17:03:03",
        "EXIF OffsetTimeOriginal": "+01:00",
    })
    dt = MetadataExtractor().resolve_capture_timestamp(jpg)
    assert dt == datetime(2018, 7, 31, 16, 3, 3, tzinfo=timezone.utc)


def test_exif_naive_uses_zone(monkeypatch, jpg):
    mock_exif(monkeypatch, {"EXIF DateTimeOriginal": "2018:07:31 17:03:03"})
    dt = MetadataExtractor(zone=BST).resolve_capture_timestamp(jpg)
    assert dt == datetime(2018, 7, 31, 16, 3, 3, tzinfo=timezone.utc)


def test_exif_materially_earlier_alternative_wins(monkeypatch, jpg):
    mock_exif(monkeypatch, {
        "EXIF DateTimeOriginal": "2018:07:31 17:03:03",
        "Image DateTime": "2015:01:01 09:00:00",
    })
    dt = MetadataExtractor(zone=timezone.utc).resolve_capture_timestamp(jpg)
    assert dt == datetime(2015, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


def test_exif_later_alternative_ignored(monkeypatch, jpg):
    mock_exif(monkeypatch, {
        "EXIF DateTimeOriginal": "2018:07:31 17:03:03",
        "Image DateTime": "2020:01:01 09:00:00",
    })
    dt = MetadataExtractor(zone=timezone.utc).resolve_capture_timestamp(jpg)
    assert dt == datetime(2018, 7, 31, 17, 3, 3, tzinfo=timezone.utc)


def test_exif_blank_date(monkeypatch, jpg):
    mock_exif(monkeypatch, {"EXIF DateTimeOriginal": "0000:00:00 00:00:00"})
    assert MetadataExtractor().resolve_capture_timestamp(jpg) is None


def test_exif_reader_failure_is_contained(monkeypatch, jpg, caplog):
    def boom(f, details=False):
        raise ValueError("corrupt")
    monkeypatch.setattr(extract_module.exifread, "process_file", boom)

    assert MetadataExtractor().resolve_capture_timestamp(jpg) is None
    assert "Exif extraction failed" in caplog.text


def test_video_media_date(monkeypatch, tmp_path):
    monkeypatch.setattr(extract_module, "MediaInfo", mock_mediainfo(
        encoded_date="UTC 2018-07-31 17:03:03",
        comapplequicktimecreationdate="2018-07-31T18:03:03+0100",
    ))
    vid = tmp_path / "clip.mov"
    vid.touch()

    dt = MetadataExtractor().resolve_capture_timestamp(vid)
    assert dt == datetime(2018, 7, 31, 17, 3, 3, tzinfo=timezone.utc)


def test_video_content_date_materially_earlier(monkeypatch, tmp_path):
    monkeypatch.setattr(extract_module, "MediaInfo", mock_mediainfo(
        encoded_date="2018-07-31 17:03:03 UTC",
        comapplequicktimecreationdate="2018-07-01T10:00:00+0100",
    ))
    vid = tmp_path / "clip.mp4"
    vid.touch()

    dt = MetadataExtractor().resolve_capture_timestamp(vid)
    assert dt == datetime(2018, 7, 1, 9, 0, 0, tzinfo=timezone.utc)


def test_video_local_time_recorded_as_utc(monkeypatch, tmp_path):
    monkeypatch.setattr(extract_module, "MediaInfo", mock_mediainfo(
        encoded_date="UTC 2018-07-31 17:03:03",
    ))
    vid = tmp_path / "clip.mov"
    vid.touch()

    dt = MetadataExtractor(utc_zone_fix=BST).resolve_capture_timestamp(vid)
    assert dt == datetime(2018, 7, 31, 16, 3, 3, tzinfo=timezone.utc)


def test_video_without_any_reader(monkeypatch, tmp_path):
    monkeypatch.setattr(extract_module, "MediaInfo", None)

    def no_exiftool(*args, **kwargs):
        raise FileNotFoundError("exiftool")
    monkeypatch.setattr(extract_module.subprocess, "check_output", no_exiftool)

    vid = tmp_path / "clip.mov"
    vid.touch()
    assert MetadataExtractor().resolve_capture_timestamp(vid) is None


def test_video_exiftool_fallback(monkeypatch, tmp_path):
    monkeypatch.setattr(extract_module, "MediaInfo", None)
    monkeypatch.setattr(extract_module.subprocess, "check_output",
                        lambda *a, **k: '[{"CreateDate": "2018:07:31 17:03:03"}]')
    vid = tmp_path / "clip.mov"
    vid.touch()

    dt = MetadataExtractor().resolve_capture_timestamp(vid)
    assert dt == datetime(2018, 7, 31, 17, 3, 3, tzinfo=timezone.utc)


def test_png_text_chunk(tmp_path):
    info = PngInfo()
    info.add_text("Creation Time", "2019-05-04T10:00:00+00:00")
    p = tmp_path / "shot.png"
    Image.new("RGB", (4, 4)).save(p, pnginfo=info)

    dt = MetadataExtractor(zone=timezone.utc).resolve_capture_timestamp(p)
    assert dt == datetime(2019, 5, 4, 10, 0, 0, tzinfo=timezone.utc)


def test_png_without_dates(tmp_path):
    p = tmp_path / "plain.png"
    Image.new("RGB", (4, 4)).save(p)
    assert MetadataExtractor().resolve_capture_timestamp(p) is None
