"""CRC32 helpers for checking extracted files against archive records."""

import zlib
from pathlib import Path
from typing import BinaryIO, Union

CRC32_CHUNK_SIZE = 64 * 1024


def crc32_of_stream(stream: BinaryIO, chunk_size: int = CRC32_CHUNK_SIZE) -> int:
    """CRC32 of everything left in ``stream``, as an unsigned 32-bit value."""
    crc = 0
    while chunk := stream.read(chunk_size):
        crc = zlib.crc32(chunk, crc)
    return crc & 0xFFFFFFFF


def compute_crc32(file_path: Union[str, Path], chunk_size: int = CRC32_CHUNK_SIZE) -> int:
    """CRC32 of a file's content.

    ZIP entries record the CRC32 of their uncompressed content, so the
    result compares directly with ``ZipInfo.CRC``.

    Raises:
        OSError: If the file cannot be read
    """
    with open(file_path, 'rb') as f:
        return crc32_of_stream(f, chunk_size)


def format_crc32(value: int) -> str:
    """Render a CRC32 the way archive listings show it (``0A1B2C3D``)."""
    return f"{value & 0xFFFFFFFF:08X}"
