"""Asset pipeline configuration.

This module defines where source assets live, which of them are minified,
combined or converted, and where the derived files are published.

The configuration is built around the PipelineConfig class. The most important
elements include:

1. Directories: the static root that is served over HTTP and the generated
   directory inside it that receives every derived file
2. Minify targets: directory/extension pairs whose stylesheets and scripts are
   minified and fingerprinted
3. Bundles: ordered lists of files combined into a single fingerprinted file
4. Image targets: directory/extension pairs converted to WebP or AVIF, with
   optional responsive widths
5. Favicon: the source image and colors used for the favicon set

All paths inside the models are relative to the static root, except
static_dir itself which is relative to the working directory (or absolute).
"""

# Standard library imports
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScanTarget(BaseModel, frozen=True):
    """A directory scanned (non-recursively) for files of one extension."""

    model_config = ConfigDict(extra="forbid")

    source: Annotated[
        str,
        Field(
            description="Directory to scan, relative to the static root ('.' for the root itself)"
        ),
    ]

    output: Annotated[
        str,
        Field(
            description="Directory receiving the derived files, relative to the static root"
        ),
    ]

    extension: Annotated[
        str,
        Field(description="File extension to match, including the dot (e.g. '.css')"),
    ]

    @field_validator("extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"extension must start with a dot: {value!r}")
        return value


class BundleConfig(BaseModel, frozen=True):
    """A set of files combined, in order, into one fingerprinted file."""

    model_config = ConfigDict(extra="forbid")

    output: Annotated[
        str,
        Field(
            description="Intermediate combined file, relative to the static root (e.g. 'gen/site.css')"
        ),
    ]

    inputs: Annotated[
        List[str],
        Field(
            min_length=1,
            description="Files to combine, relative to the static root. Order is preserved",
        ),
    ]


class FaviconConfig(BaseModel, frozen=True):
    """Favicon set generation settings."""

    model_config = ConfigDict(extra="forbid")

    source: Annotated[
        str,
        Field(description="Square source image, relative to the static root"),
    ] = "img/favicon.png"

    output: Annotated[
        str,
        Field(description="Directory receiving the icons, relative to the static root"),
    ] = "gen/img"

    site_name: Annotated[
        str, Field(description="Site name written into site.webmanifest")
    ] = ""

    theme_color: Annotated[
        str, Field(description="Theme and background color for site.webmanifest")
    ] = ""

    tile_color: Annotated[
        str, Field(description="Windows tile color for browserconfig.xml")
    ] = "red"

    display: Annotated[
        str, Field(description="Display mode for site.webmanifest")
    ] = ""


class PipelineConfig(BaseModel, frozen=True):
    """Complete asset pipeline configuration."""

    model_config = ConfigDict(extra="forbid")

    static_dir: Annotated[
        Path,
        Field(description="Static root directory served under static_url"),
    ] = Path("static")

    gen_dir: Annotated[
        str,
        Field(
            description="Directory for generated files, relative to the static root"
        ),
    ] = "gen"

    static_url: Annotated[
        str,
        Field(description="URL path the static root is mounted on (no trailing slash)"),
    ] = "/static"

    minify_targets: Annotated[
        List[ScanTarget],
        Field(description="Stylesheet and script directories to minify"),
    ] = []

    bundles: Annotated[
        List[BundleConfig],
        Field(description="Combined bundles, built after the minify targets"),
    ] = []

    image_targets: Annotated[
        List[ScanTarget],
        Field(description="Image directories to convert"),
    ] = []

    image_format: Annotated[
        Literal["webp", "avif"],
        Field(description="Target format for converted images"),
    ] = "webp"

    image_quality: Annotated[
        int,
        Field(ge=1, le=100, description="Lossy encoder quality for converted images"),
    ] = 75

    responsive_widths: Annotated[
        List[int],
        Field(
            description="Extra widths (in pixels) to produce for every converted image"
        ),
    ] = []

    favicon: Annotated[
        Optional[FaviconConfig],
        Field(description="Favicon generation settings, or None to skip"),
    ] = None

    @field_validator("static_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("responsive_widths")
    @classmethod
    def _check_widths(cls, value: List[int]) -> List[int]:
        for width in value:
            if width <= 0:
                raise ValueError(f"responsive widths must be positive: {width}")
        return value

    @property
    def gen_path(self) -> Path:
        """Absolute-or-relative path of the generated directory."""
        return self.static_dir / self.gen_dir

    def resolve(self, relative: Union[str, Path]) -> Path:
        """Resolve a path relative to the static root."""
        return self.static_dir / relative


DEFAULT_CONFIG = PipelineConfig(
    minify_targets=[
        ScanTarget(source=".", output="gen", extension=".css"),
        ScanTarget(source="styles", output="gen/styles", extension=".css"),
        ScanTarget(source="script", output="gen/script", extension=".js"),
    ],
    bundles=[
        BundleConfig(
            output="gen/mango-final.css",
            inputs=[
                "styles/mango.css",
                "styles/mango-tokens.css",
                "styles/mango-utils.css",
                "styles/mango-blocks.css",
            ],
        ),
    ],
    image_targets=[
        ScanTarget(source="img", output="gen/img", extension=".jpeg"),
        ScanTarget(source="img", output="gen/img", extension=".jpg"),
        ScanTarget(source="img", output="gen/img", extension=".png"),
    ],
    favicon=FaviconConfig(),
)


def load_config(config_path: Union[str, Path]) -> PipelineConfig:
    """Load a pipeline configuration from a JSON file.

    Args:
        config_path: Path to a JSON document matching PipelineConfig

    Returns:
        Validated configuration

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the document is not a valid configuration
    """
    return PipelineConfig.model_validate_json(Path(config_path).read_text())
