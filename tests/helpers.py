"""Utility functions for tests."""

import io
import struct
import zlib
from pathlib import Path
from typing import Any, Tuple

from PIL import Image

from boiler.config import PipelineConfig
from boiler.core import AssetPipeline


def image_bytes(
    size: Tuple[int, int] = (40, 20),
    color: Tuple[int, int, int] = (200, 30, 30),
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid color test image."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def write_image(path: Path, **kwargs: Any) -> Path:
    """Write a solid color test image, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fmt = "JPEG" if path.suffix in (".jpg", ".jpeg") else "PNG"
    path.write_bytes(image_bytes(fmt=fmt, **kwargs))
    return path


def write_text(path: Path, text: str) -> Path:
    """Write a text file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def fingerprint_in_subprocess(static_dir: str, source: str) -> str:
    """Fingerprint one file in a fresh pipeline; used from worker processes.

    Returns:
        The published path registered for the source
    """
    pipeline = AssetPipeline(PipelineConfig(static_dir=Path(static_dir)))
    mapping: dict[str, str] = {}
    pipeline.fingerprint_file(source, Path(static_dir) / "gen", mapping)
    return mapping[pipeline.source_key(Path(source))]


def truncated_png() -> bytes:
    """A PNG whose header is intact but whose pixel data is cut short."""
    content = image_bytes(size=(300, 300), color=(1, 2, 3))
    return content[: len(content) // 2]


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(tag + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", crc)


def oversized_png(width: int = 20000, height: int = 20000) -> bytes:
    """A PNG header declaring more pixels than Pillow agrees to decode.

    Only the header and a stub data chunk are present, so the file is tiny.
    """
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b"\x00"))
        + _png_chunk(b"IEND", b"")
    )
