"""Content transforms applied to source assets.

Stylesheets and scripts are minified with rcssmin and rjsmin. Raster images are
decoded and re-encoded with Pillow into a web-friendly format (WebP or AVIF),
optionally resized to a fixed width.
"""

# Standard library imports
import io
from typing import Callable, Dict, Literal, Optional

# Third-party imports
import rcssmin
import rjsmin
from PIL import Image, UnidentifiedImageError

# Local imports
from boiler.core.errors import TransformError

ImageFormat = Literal["webp", "avif"]

TEXT_EXTENSIONS = (".css", ".js")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg")

# Pillow format names for the supported output formats
PIL_FORMATS: Dict[str, str] = {
    "webp": "WEBP",
    "avif": "AVIF",
}

DEFAULT_IMAGE_QUALITY = 75


def minify_css(text: str) -> str:
    """Minify a stylesheet."""
    result: str = rcssmin.cssmin(text)
    return result


def minify_js(text: str) -> str:
    """Minify a script."""
    result: str = rjsmin.jsmin(text)
    return result


MINIFIERS: Dict[str, Callable[[str], str]] = {
    ".css": minify_css,
    ".js": minify_js,
}


def minify(content: bytes, extension: str) -> bytes:
    """Minify UTF-8 encoded text content based on its file extension.

    Args:
        content: Raw source bytes
        extension: File extension including the dot (".css" or ".js")

    Returns:
        Minified content, UTF-8 encoded

    Raises:
        TransformError: If the extension is not minifiable or the content is
            not valid UTF-8
    """
    minifier = MINIFIERS.get(extension.lower())
    if minifier is None:
        raise TransformError(f"no minifier for extension {extension!r}")
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransformError(f"content is not valid UTF-8: {e}") from e
    return minifier(text).encode("utf-8")


def _prepare_mode(img: Image.Image) -> Image.Image:
    """Convert palette and other exotic modes to RGB(A) before encoding."""
    if img.mode in ("RGB", "RGBA"):
        return img
    has_alpha = "A" in img.mode or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def encode_image(
    content: bytes,
    image_format: ImageFormat,
    quality: int = DEFAULT_IMAGE_QUALITY,
    width: Optional[int] = None,
) -> bytes:
    """Decode a PNG/JPEG image and re-encode it in another format.

    Args:
        content: Raw source image bytes
        image_format: Target format, "webp" or "avif"
        quality: Lossy encoder quality (1-100)
        width: If given, resize to this width keeping the aspect ratio

    Returns:
        Encoded image bytes

    Raises:
        TransformError: If the image cannot be decoded, resized or encoded
    """
    pil_format = PIL_FORMATS.get(image_format)
    if pil_format is None:
        raise TransformError(f"unsupported image format {image_format!r}")

    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            out = _prepare_mode(img)
            if width is not None:
                ratio = out.height / out.width
                height = max(1, round(width * ratio))
                out = out.resize((width, height), Image.Resampling.BICUBIC)
            buf = io.BytesIO()
            out.save(buf, format=pil_format, quality=quality)
    except UnidentifiedImageError as e:
        raise TransformError(f"cannot identify image: {e}") from e
    except Image.DecompressionBombError as e:
        raise TransformError(f"image too large to convert: {e}") from e
    except (OSError, SyntaxError, ValueError, KeyError) as e:
        # KeyError is raised by Pillow for formats without an encoder plugin,
        # SyntaxError by some decoders for broken files
        raise TransformError(f"cannot convert image to {image_format}: {e}") from e
    return buf.getvalue()
