"""Shared fixtures for archive extractor tests."""

import struct
import zipfile
import zlib
from pathlib import Path
from typing import Dict, Union

import pytest


def _gen_crc(crc: int) -> int:
    for _ in range(8):
        if crc & 1:
            crc = (crc >> 1) ^ 0xEDB88320
        else:
            crc >>= 1
    return crc


_CRC_TABLE = [_gen_crc(i) for i in range(256)]


def _crc_byte(ch: int, crc: int) -> int:
    return (crc >> 8) ^ _CRC_TABLE[(crc ^ ch) & 0xFF]


class ZipCryptoEncrypter:
    """Traditional PKWARE encryption, the scheme zipfile can decrypt."""

    def __init__(self, password: bytes):
        self.key0 = 305419896
        self.key1 = 591751049
        self.key2 = 878082192
        for ch in password:
            self._update_keys(ch)

    def _update_keys(self, ch: int) -> None:
        self.key0 = _crc_byte(ch, self.key0)
        self.key1 = (self.key1 + (self.key0 & 0xFF)) & 0xFFFFFFFF
        self.key1 = (self.key1 * 134775813 + 1) & 0xFFFFFFFF
        self.key2 = _crc_byte((self.key1 >> 24) & 0xFF, self.key2)

    def encrypt(self, data: bytes) -> bytes:
        result = bytearray()
        for ch in data:
            k = self.key2 | 2
            result.append(ch ^ (((k * (k ^ 1)) >> 8) & 0xFF))
            self._update_keys(ch)
        return bytes(result)


def write_encrypted_zip(path: Path, name: str, data: bytes, password: str) -> Path:
    """Write a single stored entry encrypted with ZipCrypto."""
    crc = zlib.crc32(data) & 0xFFFFFFFF
    encrypter = ZipCryptoEncrypter(password.encode('utf-8'))
    # 11 filler bytes, then the check byte zipfile verifies
    header = bytes(range(1, 12)) + bytes([crc >> 24])
    payload = encrypter.encrypt(header + data)

    fname = name.encode('utf-8')
    flags = 0x1
    method = zipfile.ZIP_STORED
    dos_time, dos_date = 0, (1 << 5) | 1  # 1980-01-01 00:00

    local_header = struct.pack(
        "<4s5H3L2H",
        b"PK\x03\x04", 20, flags, method, dos_time, dos_date,
        crc, len(payload), len(data), len(fname), 0,
    )
    central_dir = struct.pack(
        "<4s6H3L5H2L",
        b"PK\x01\x02", 20, 20, flags, method, dos_time, dos_date,
        crc, len(payload), len(data), len(fname), 0, 0, 0, 0, 0, 0,
    ) + fname
    local = local_header + fname + payload
    end_record = struct.pack(
        "<4s4H2LH",
        b"PK\x05\x06", 0, 0, 1, 1, len(central_dir), len(local), 0,
    )

    path.write_bytes(local + central_dir + end_record)
    return path


@pytest.fixture
def extraction_root(tmp_path):
    """Existing, empty extraction directory."""
    root = tmp_path / "out"
    root.mkdir()
    return root


@pytest.fixture
def make_zip(tmp_path):
    """Factory writing a ZIP archive from a {stored_path: content} mapping.

    Entries are written in mapping order; a ``None`` content writes a
    directory entry.
    """
    def _make_zip(
        entries: Dict[str, Union[bytes, str, None]],
        name: str = "archive.zip",
        compression: int = zipfile.ZIP_DEFLATED,
    ) -> Path:
        zip_path = tmp_path / name
        with zipfile.ZipFile(zip_path, 'w', compression) as zf:
            for stored_path, content in entries.items():
                info = zipfile.ZipInfo(stored_path)
                info.compress_type = compression
                if content is None:
                    info.external_attr = 0o40755 << 16 | 0x10
                    zf.writestr(info, b"")
                else:
                    info.external_attr = 0o644 << 16
                    zf.writestr(info, content)
        return zip_path

    return _make_zip


@pytest.fixture
def encrypted_zip(tmp_path):
    """Archive with one ZipCrypto entry ``secret.txt`` (password ``letmein``)."""
    return write_encrypted_zip(
        tmp_path / "encrypted.zip", "secret.txt", b"classified dataset\n" * 20, "letmein"
    )


@pytest.fixture
def corrupted_zip(make_zip):
    """Archive whose single stored entry fails its CRC check."""
    name = "data.bin"
    zip_path = make_zip({name: b"0123456789" * 200}, name="corrupt.zip",
                        compression=zipfile.ZIP_STORED)
    raw = bytearray(zip_path.read_bytes())
    # Stored data starts right after the 30-byte local header and the name
    offset = 30 + len(name) + 100
    raw[offset] ^= 0xFF
    zip_path.write_bytes(bytes(raw))
    return zip_path


def tree_snapshot(root: Path) -> Dict[str, Union[bytes, None]]:
    """Map every path below ``root`` to file content (None for directories)."""
    snapshot = {}
    for path in sorted(root.rglob("*")):
        key = path.relative_to(root).as_posix()
        snapshot[key] = None if path.is_dir() else path.read_bytes()
    return snapshot


@pytest.fixture
def snapshot():
    """The tree_snapshot helper."""
    return tree_snapshot
