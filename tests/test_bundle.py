"""Tests for combining files into fingerprinted bundles."""

# Standard library imports
import logging
import re
from pathlib import Path

# Third-party imports
import pytest

# Local imports
from boiler.config import PipelineConfig
from boiler.core import AssetPipeline, CombineError
from tests.helpers import write_text


@pytest.fixture
def pipeline(static_dir: Path) -> AssetPipeline:
    return AssetPipeline(PipelineConfig(static_dir=static_dir))


def test_combine_preserves_order(static_dir: Path, pipeline: AssetPipeline) -> None:
    """Inputs are concatenated in the order given, each followed by a blank line."""
    a = write_text(static_dir / "a.css", "a { color: red }")
    b = write_text(static_dir / "b.css", "a { color: blue }")
    output = static_dir / "gen" / "ab.css"
    mapping: dict[str, str] = {}

    pipeline.combine(output, mapping, a, b)

    assert output.read_text() == "a { color: red }\n\na { color: blue }\n\n"
    published = (static_dir / mapping["ab.css"]).read_text()
    assert published.index("red") < published.index("blue")


def test_combine_reverse_order_differs(
    static_dir: Path, pipeline: AssetPipeline
) -> None:
    """Order is significant: swapping inputs gives a different bundle."""
    a = write_text(static_dir / "a.css", "a { color: red }")
    b = write_text(static_dir / "b.css", "a { color: blue }")
    forward: dict[str, str] = {}
    backward: dict[str, str] = {}

    pipeline.combine(static_dir / "gen" / "x.css", forward, a, b)
    pipeline.combine(static_dir / "gen" / "x.css", backward, b, a)

    assert forward["x.css"] != backward["x.css"]


def test_combine_fingerprints_bundle(
    static_dir: Path, pipeline: AssetPipeline
) -> None:
    """The bundle is minified next to the intermediate and keyed by its name."""
    mapping: dict[str, str] = {}
    result = pipeline.combine(
        static_dir / "gen" / "site.css",
        mapping,
        static_dir / "styles" / "base.css",
        static_dir / "styles" / "theme.css",
    )

    assert re.fullmatch(r"gen/site\.min\.[0-9a-f]{64}\.css", mapping["site.css"])
    assert result == static_dir / mapping["site.css"]
    minified = result.read_text()
    assert "\n" not in minified
    assert minified.index("margin:0") < minified.index("color:blue")


def test_combine_duplicate_inputs_kept(
    static_dir: Path, pipeline: AssetPipeline
) -> None:
    """Inputs are not deduplicated."""
    a = write_text(static_dir / "a.css", "a{x:1}")
    output = static_dir / "gen" / "dup.css"

    pipeline.combine(output, {}, a, a)

    assert output.read_text() == "a{x:1}\n\na{x:1}\n\n"


def test_combine_missing_input(static_dir: Path, pipeline: AssetPipeline) -> None:
    """A missing input abandons the whole bundle."""
    mapping: dict[str, str] = {}
    output = static_dir / "gen" / "site.css"

    with pytest.raises(CombineError) as exc_info:
        pipeline.combine(
            output,
            mapping,
            static_dir / "styles" / "base.css",
            static_dir / "styles" / "missing.css",
        )

    assert "missing.css" in str(exc_info.value)
    assert exc_info.value.source == str(output)
    assert mapping == {}
    assert not output.exists()


def test_combine_creates_output_directory(
    static_dir: Path, pipeline: AssetPipeline
) -> None:
    """The intermediate's directory is created when needed."""
    mapping: dict[str, str] = {}
    pipeline.combine(
        static_dir / "gen" / "bundles" / "all.js",
        mapping,
        static_dir / "script" / "main.js",
    )

    assert re.fullmatch(
        r"gen/bundles/all\.min\.[0-9a-f]{64}\.js", mapping["bundles/all.js"]
    )


def test_bundle_replacing_source_key_warns(
    static_dir: Path, pipeline: AssetPipeline, caplog: pytest.LogCaptureFixture
) -> None:
    """A bundle named like a root stylesheet takes over its key, with a warning."""
    write_text(static_dir / "site.css", "h1 { color: green }")
    mapping: dict[str, str] = {}
    pipeline.scan_and_transform(static_dir, static_dir / "gen", ".css", mapping)
    scanned = mapping["site.css"]

    with caplog.at_level(logging.WARNING):
        pipeline.combine(
            static_dir / "gen" / "site.css", mapping, static_dir / "styles" / "base.css"
        )

    assert mapping["site.css"] != scanned
    assert "replaces" in caplog.text
    assert scanned in caplog.text


def test_bundle_new_key_does_not_warn(
    static_dir: Path, pipeline: AssetPipeline, caplog: pytest.LogCaptureFixture
) -> None:
    """Building a bundle under a fresh key logs no warning."""
    with caplog.at_level(logging.WARNING):
        pipeline.combine(
            static_dir / "gen" / "site.css", {}, static_dir / "styles" / "base.css"
        )

    assert "replaces" not in caplog.text
