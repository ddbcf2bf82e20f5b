"""Favicon set generation.

Produces the usual set of browser, Android, Apple and Windows tile icons from a
single square source image, together with the browserconfig.xml and
site.webmanifest files that reference them.
"""

# Standard library imports
import io
import logging
import time
from pathlib import Path
from typing import List, Tuple, Union

# Third-party imports
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

# Local imports
from boiler.core import publishing
from boiler.core.errors import ReadError, TransformError, WriteError

# Output file name and (width, height) for every generated icon
ICON_SIZES: List[Tuple[str, Tuple[int, int]]] = [
    ("android-chrome-192x192.png", (192, 192)),
    ("android-chrome-512x512.png", (512, 512)),
    ("apple-touch-icon.png", (180, 180)),
    ("favicon-16x16.png", (16, 16)),
    ("favicon-32x32.png", (32, 32)),
    ("favicon.png", (48, 48)),
    ("mstile-70x70.png", (70, 70)),
    ("mstile-150x150.png", (150, 150)),
    ("mstile-310x150.png", (310, 150)),
    ("mstile-310x310.png", (310, 310)),
]

JPEG_COPY_NAME = "favicon.jpg"
JPEG_COPY_QUALITY = 95

BROWSERCONFIG_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<browserconfig>
    <msapplication>
        <tile>
            <square70x70logo src="/mstile-70x70.png"/>
            <square150x150logo src="/mstile-150x150.png"/>
            <wide310x150logo src="/mstile-310x150.png"/>
            <square310x310logo src="/mstile-310x310.png"/>
            <TileColor>{tile_color}</TileColor>
        </tile>
    </msapplication>
</browserconfig>"""


class Icon(BaseModel):
    src: str
    sizes: str
    type: str


class WebManifest(BaseModel):
    name: str
    short_name: str
    icons: List[Icon]
    theme_color: str
    background_color: str
    display: str


def build_web_manifest(site_name: str, theme_color: str, display: str) -> bytes:
    """Render site.webmanifest as compact JSON."""
    manifest = WebManifest(
        name=site_name,
        short_name=site_name,
        icons=[
            Icon(src="/android-chrome-192x192.png", sizes="192x192", type="image/png"),
            Icon(src="/android-chrome-512x512.png", sizes="512x512", type="image/png"),
        ],
        theme_color=theme_color,
        background_color=theme_color,
        display=display,
    )
    return manifest.model_dump_json().encode("utf-8")


def build_browserconfig(tile_color: str) -> bytes:
    """Render browserconfig.xml for Windows tiles."""
    return BROWSERCONFIG_TEMPLATE.format(tile_color=tile_color).encode("utf-8")


def _encode(img: Image.Image, pil_format: str, **params: int) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=pil_format, **params)
    return buf.getvalue()


def render_icons(source: Image.Image) -> List[Tuple[str, bytes]]:
    """Resize the source image into every icon size, encoded as PNG.

    Args:
        source: Decoded source image

    Returns:
        List of (file name, PNG bytes) pairs
    """
    if source.mode not in ("RGB", "RGBA"):
        source = source.convert("RGBA")
    return [
        (name, _encode(source.resize(size, Image.Resampling.LANCZOS), "PNG"))
        for name, size in ICON_SIZES
    ]


def generate_favicon(
    source_image: Union[str, Path],
    output_dir: Union[str, Path],
    site_name: str = "",
    theme_color: str = "",
    tile_color: str = "red",
    display: str = "",
) -> List[Path]:
    """Generate the favicon set for a site.

    Files whose content has not changed since the previous run are left alone.

    Args:
        source_image: Square source image (PNG or JPEG)
        output_dir: Directory receiving the icons and metadata files
        site_name: Name written to site.webmanifest
        theme_color: Theme and background color written to site.webmanifest
        tile_color: Windows tile color written to browserconfig.xml
        display: Display mode written to site.webmanifest

    Returns:
        Paths of all files in the favicon set, or an empty list if the source
        image does not exist

    Raises:
        ReadError: If the source image exists but cannot be read
        TransformError: If the source image cannot be decoded or resized
        WriteError: If a file cannot be published
    """
    source_image = Path(source_image)
    output_dir = Path(output_dir)
    if not source_image.is_file():
        logging.warning(
            f"Image {source_image} could not be processed into favicon for {output_dir}"
        )
        return []

    start = time.monotonic()
    try:
        content = source_image.read_bytes()
    except OSError as e:
        raise ReadError(f"cannot read favicon source: {e}", source_image) from e

    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            files = render_icons(img)
            jpeg_copy = _encode(img.convert("RGB"), "JPEG", quality=JPEG_COPY_QUALITY)
            files.append((JPEG_COPY_NAME, jpeg_copy))
    except UnidentifiedImageError as e:
        raise TransformError(
            f"cannot identify favicon source: {e}", source_image
        ) from e
    except Image.DecompressionBombError as e:
        raise TransformError(
            f"favicon source image too large: {e}", source_image
        ) from e
    except (OSError, SyntaxError, ValueError) as e:
        raise TransformError(f"cannot render favicon: {e}", source_image) from e

    files.append(("browserconfig.xml", build_browserconfig(tile_color)))
    manifest = build_web_manifest(site_name, theme_color, display)
    files.append(("site.webmanifest", manifest))

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteError(f"cannot create {output_dir}: {e}", output_dir) from e
    written = 0
    paths = []
    for name, data in files:
        path = output_dir / name
        if publishing.publish_if_changed(data, path):
            written += 1
        paths.append(path)

    logging.info(
        f"({time.monotonic() - start:.3f}s) generated favicon set from {source_image}"
        f" in {output_dir} ({written} of {len(paths)} files updated)"
    )
    return paths
