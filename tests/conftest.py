"""Configuration for pytest.

Provides a populated static directory and a matching pipeline configuration.
"""

# Standard library imports
from pathlib import Path

# Third-party imports
import pytest

# Local imports
from boiler.config import BundleConfig, FaviconConfig, PipelineConfig, ScanTarget
from tests.helpers import write_image, write_text


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """Create a static directory laid out like a boiler site."""
    root = tmp_path / "static"
    write_text(root / "style.css", ".btn{color:red}")
    write_text(root / "styles" / "base.css", "body {\n  margin: 0;\n}\n")
    write_text(root / "styles" / "theme.css", "body {\n  color: blue;\n}\n")
    write_text(
        root / "script" / "main.js",
        "// entry point\nfunction hello(name) {\n  return 'hi ' + name;\n}\n",
    )
    write_image(root / "img" / "logo.png", size=(64, 32))
    write_image(root / "img" / "photo.jpg", size=(50, 50), color=(10, 120, 10))
    write_image(root / "img" / "favicon.png", size=(64, 64), color=(0, 0, 200))
    return root


@pytest.fixture
def pipeline_config(static_dir: Path) -> PipelineConfig:
    """Pipeline configuration covering every build step."""
    return PipelineConfig(
        static_dir=static_dir,
        minify_targets=[
            ScanTarget(source=".", output="gen", extension=".css"),
            ScanTarget(source="styles", output="gen/styles", extension=".css"),
            ScanTarget(source="script", output="gen/script", extension=".js"),
        ],
        bundles=[
            BundleConfig(
                output="gen/site.css",
                inputs=["styles/base.css", "styles/theme.css"],
            ),
        ],
        image_targets=[
            ScanTarget(source="img", output="gen/img", extension=".jpg"),
            ScanTarget(source="img", output="gen/img", extension=".png"),
        ],
        responsive_widths=[16],
        favicon=FaviconConfig(site_name="Test Site", theme_color="#ffffff"),
    )
