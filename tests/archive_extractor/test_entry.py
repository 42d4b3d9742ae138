"""Tests for streaming a single entry to disk."""

import dataclasses
import errno
import zipfile
from unittest.mock import patch

import pytest
from dataset_unpack.archive_extractor.entry import extract_entry, partial_path
from dataset_unpack.archive_extractor.errors import (
    BadPasswordError,
    CorruptedEntryError,
    StreamReadError,
    StreamWriteError,
)
from dataset_unpack.archive_extractor.progress import ExtractionProgress
from dataset_unpack.archive_extractor.reader import ZipArchiveReader

real_open = open


class ShortWriter:
    """File wrapper that silently drops the last byte of every write."""

    def __init__(self, handle):
        self._handle = handle

    def write(self, data):
        return self._handle.write(data[:-1])

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self._handle.close()


class FullDiskWriter(ShortWriter):
    def write(self, data):
        raise OSError(errno.ENOSPC, "No space left on device")


def wrapped_open(wrapper):
    def _open(path, mode='r', *args, **kwargs):
        return wrapper(real_open(path, mode, *args, **kwargs))
    return _open


def leftovers(root):
    return sorted(p.name for p in root.rglob("*"))


class TestExtractEntry:
    """Tests for extract_entry."""

    def test_streams_content(self, make_zip, extraction_root):
        content = b"line of text\n" * 2000
        destination = extraction_root / "data.txt"

        with ZipArchiveReader(make_zip({"data.txt": content})) as reader:
            written = extract_entry(
                reader, reader.current_entry(), destination, extraction_root, buffer_size=512
            )

        assert written == len(content)
        assert destination.read_bytes() == content
        assert not partial_path(destination).exists()

    def test_empty_entry(self, make_zip, extraction_root):
        destination = extraction_root / "empty.txt"

        with ZipArchiveReader(make_zip({"empty.txt": b""})) as reader:
            written = extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert written == 0
        assert destination.read_bytes() == b""

    def test_creates_missing_parent(self, make_zip, extraction_root):
        destination = extraction_root / "deep" / "er" / "x.txt"

        with ZipArchiveReader(make_zip({"deep/er/x.txt": b"x"})) as reader:
            extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert destination.read_bytes() == b"x"

    def test_overwrites_existing_file(self, make_zip, extraction_root):
        destination = extraction_root / "a.txt"
        destination.write_bytes(b"a much longer previous version")

        with ZipArchiveReader(make_zip({"a.txt": b"new"})) as reader:
            extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert destination.read_bytes() == b"new"

    def test_non_atomic_writes_in_place(self, make_zip, extraction_root):
        destination = extraction_root / "a.txt"

        with ZipArchiveReader(make_zip({"a.txt": b"abc"})) as reader:
            extract_entry(
                reader, reader.current_entry(), destination, extraction_root, atomic=False
            )

        assert destination.read_bytes() == b"abc"

    def test_entry_stream_closed_afterwards(self, make_zip, extraction_root):
        with ZipArchiveReader(make_zip({"a.txt": b"abc"})) as reader:
            extract_entry(
                reader, reader.current_entry(), extraction_root / "a.txt", extraction_root
            )
            with pytest.raises(StreamReadError):
                reader.read(1)


class TestWriteFailures:
    """Tests for output-side failures."""

    def test_short_write(self, make_zip, extraction_root):
        destination = extraction_root / "a.txt"

        with ZipArchiveReader(make_zip({"a.txt": b"abcdef"})) as reader:
            with patch(
                "dataset_unpack.archive_extractor.entry.open",
                create=True,
                side_effect=wrapped_open(ShortWriter),
            ):
                with pytest.raises(StreamWriteError, match="Short write"):
                    extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert leftovers(extraction_root) == []

    def test_disk_full(self, make_zip, extraction_root):
        destination = extraction_root / "a.txt"

        with ZipArchiveReader(make_zip({"a.txt": b"abcdef"})) as reader:
            with patch(
                "dataset_unpack.archive_extractor.entry.open",
                create=True,
                side_effect=wrapped_open(FullDiskWriter),
            ):
                with pytest.raises(StreamWriteError) as exc_info:
                    extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert exc_info.value.context["errno"] == errno.ENOSPC
        assert leftovers(extraction_root) == []


class TestReadFailures:
    """Tests for input-side failures."""

    def test_corrupted_entry_atomic_leaves_nothing(self, corrupted_zip, extraction_root):
        destination = extraction_root / "data.bin"

        with ZipArchiveReader(corrupted_zip) as reader:
            with pytest.raises(CorruptedEntryError):
                extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert leftovers(extraction_root) == []

    def test_corrupted_entry_non_atomic_leaves_partial_file(self, corrupted_zip, extraction_root):
        destination = extraction_root / "data.bin"

        with ZipArchiveReader(corrupted_zip) as reader:
            with pytest.raises(CorruptedEntryError):
                extract_entry(
                    reader, reader.current_entry(), destination, extraction_root, atomic=False
                )

        assert destination.exists()

    def test_missing_password_creates_no_file(self, encrypted_zip, extraction_root):
        with ZipArchiveReader(encrypted_zip) as reader:
            with pytest.raises(BadPasswordError):
                extract_entry(
                    reader, reader.current_entry(), extraction_root / "secret.txt",
                    extraction_root, atomic=False,
                )

        assert leftovers(extraction_root) == []

    def test_password_decrypts(self, encrypted_zip, extraction_root):
        destination = extraction_root / "secret.txt"

        with ZipArchiveReader(encrypted_zip) as reader:
            extract_entry(
                reader, reader.current_entry(), destination, extraction_root, password="letmein"
            )

        assert destination.read_bytes() == b"classified dataset\n" * 20


class TestChecksumVerification:
    """Tests for post-write CRC32 verification."""

    def test_matching_checksum(self, make_zip, extraction_root):
        destination = extraction_root / "a.bin"

        with ZipArchiveReader(make_zip({"a.bin": bytes(range(256)) * 10})) as reader:
            extract_entry(
                reader, reader.current_entry(), destination, extraction_root,
                verify_checksum=True,
            )

        assert destination.stat().st_size == 2560

    def test_mismatch_discards_file(self, make_zip, extraction_root):
        destination = extraction_root / "a.bin"

        with ZipArchiveReader(make_zip({"a.bin": b"payload"})) as reader:
            entry = reader.current_entry()
            wrong = dataclasses.replace(entry, crc32=(entry.crc32 + 1) & 0xFFFFFFFF)
            with pytest.raises(CorruptedEntryError, match="CRC32 mismatch"):
                extract_entry(reader, wrong, destination, extraction_root, verify_checksum=True)

        assert leftovers(extraction_root) == []


class TestProgressReporting:
    """Tests for byte progress updates during streaming."""

    def test_bytes_reported(self, make_zip, extraction_root):
        events = []
        progress = ExtractionProgress(1, callback=events.append, byte_interval=1000)
        content = b"z" * 4096

        zip_path = make_zip({"z.bin": content}, compression=zipfile.ZIP_STORED)
        with ZipArchiveReader(zip_path) as reader:
            entry = reader.current_entry()
            progress.start_entry(entry.index, entry.stored_path, entry.file_size)
            extract_entry(
                reader, entry, extraction_root / "z.bin", extraction_root,
                buffer_size=512, progress=progress,
            )

        assert events[0].bytes_written == 0
        assert [e.bytes_written for e in events[1:]] == [1024, 2048, 3072, 4096]
        assert progress.total_bytes == 4096


class TestPartialPath:
    """Tests for the temporary file name used by atomic writes."""

    def test_short_name(self, tmp_path):
        assert partial_path(tmp_path / "a.txt") == tmp_path / ".a.txt.part"

    def test_long_name_stays_within_limit(self, tmp_path):
        destination = tmp_path / ("x" * 251 + ".bin")

        temporary = partial_path(destination)

        assert temporary.parent == tmp_path
        assert temporary.name.startswith(".") and temporary.name.endswith(".part")
        assert len(temporary.name.encode("utf-8")) <= 255

    def test_long_names_do_not_share_temporary(self, tmp_path):
        first = partial_path(tmp_path / ("a" * 255))
        second = partial_path(tmp_path / ("b" * 255))

        assert first != second

    def test_longest_valid_name_extracts(self, make_zip, extraction_root):
        name = "x" * 251 + ".bin"
        destination = extraction_root / name

        with ZipArchiveReader(make_zip({name: b"long"})) as reader:
            extract_entry(reader, reader.current_entry(), destination, extraction_root)

        assert destination.read_bytes() == b"long"
        assert leftovers(extraction_root) == [name]
