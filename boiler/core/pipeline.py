"""Content addressed asset pipeline.

This module turns source stylesheets, scripts and images into derived files
whose names embed a SHA-256 hash of their final content, e.g.

    static/style.css       -> static/gen/style.min.<hash>.css
    static/img/photo.png   -> static/gen/img/photo.<hash>.webp

Because the name is derived from the content, a derived file that already
exists is known to be correct and is never rewritten. Combined with atomic
publishing this lets several worker processes build into the same directory at
startup without any locking.

The pipeline builds two mappings from logical asset names to published paths
(both relative to the static root): fingerprints for minified text assets and
bundles, and optimizations for converted images.
"""

# Standard library imports
import logging
import os
import time
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional, Sequence, Union

# Local imports
from boiler.config import PipelineConfig
from boiler.core import publishing
from boiler.core.errors import AssetError, CombineError, ReadError, WriteError
from boiler.core.favicon import generate_favicon
from boiler.core.hashing import fingerprint
from boiler.core.transforms import (
    IMAGE_EXTENSIONS,
    TEXT_EXTENSIONS,
    encode_image,
    minify,
)
from boiler.types import AssetFailure, BuildResult

PathLike = Union[str, Path]

# Separator written after every input of a bundle
BUNDLE_SEPARATOR = b"\n\n"


class AssetPipeline:
    """Builds fingerprinted assets for one static root."""

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize the pipeline.

        Args:
            config: Directories, targets and encoder settings to build with
        """
        self.config = config
        self.failures: List[AssetFailure] = []

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def source_key(self, source: Path) -> str:
        """Logical name of a source file.

        Files inside the generated directory (bundle intermediates) are keyed
        relative to it, everything else relative to the static root.
        """
        source = Path(os.path.abspath(source))
        gen_root = Path(os.path.abspath(self.config.gen_path))
        static_root = Path(os.path.abspath(self.config.static_dir))
        if source.is_relative_to(gen_root):
            return source.relative_to(gen_root).as_posix()
        return Path(os.path.relpath(source, static_root)).as_posix()

    def published_key(self, published: Path) -> str:
        """Path of a derived file relative to the static root."""
        static_root = os.path.abspath(self.config.static_dir)
        return Path(os.path.relpath(os.path.abspath(published), static_root)).as_posix()

    def _output_name(self, source: Path, digest: str, width: Optional[int]) -> str:
        ext = source.suffix.lower()
        if ext in TEXT_EXTENSIONS:
            return f"{source.stem}.min.{digest}{source.suffix}"
        if width is not None:
            return f"{source.stem}_{width}x.{digest}.{self.config.image_format}"
        return f"{source.stem}.{digest}.{self.config.image_format}"

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    def transform(self, source: Path, width: Optional[int] = None) -> bytes:
        """Read a source file and return its transformed content.

        Args:
            source: Source file; the transform is chosen by its extension
            width: Resize width for images (None keeps the original size)

        Returns:
            Minified text or re-encoded image bytes

        Raises:
            ReadError: If the file cannot be read
            TransformError: If the content cannot be transformed
        """
        try:
            content = source.read_bytes()
        except OSError as e:
            raise ReadError(f"cannot read {source}: {e}", source) from e

        ext = source.suffix.lower()
        try:
            if ext in IMAGE_EXTENSIONS:
                return encode_image(
                    content,
                    self.config.image_format,
                    quality=self.config.image_quality,
                    width=width,
                )
            return minify(content, ext)
        except AssetError as e:
            e.source = os.fspath(source)
            raise

    def fingerprint_file(
        self,
        source: PathLike,
        output_dir: PathLike,
        mapping: MutableMapping[str, str],
        width: Optional[int] = None,
    ) -> Path:
        """Transform one file and publish it under a content addressed name.

        If a file with the computed name already exists nothing is written.

        Args:
            source: Source file to transform
            output_dir: Directory receiving the derived file (must exist)
            mapping: Updated in place with source key -> published path
            width: Produce a resized image variant of this width instead

        Returns:
            Path of the derived file

        Raises:
            ReadError: If the source cannot be read
            TransformError: If the content cannot be transformed
            WriteError: If the derived file cannot be published
        """
        start = time.monotonic()
        source = Path(source)
        output_dir = Path(output_dir)

        transformed = self.transform(source, width=width)
        digest = fingerprint(transformed)
        destination = output_dir / self._output_name(source, digest, width)

        key = self.source_key(source)
        if width is not None:
            key = f"{key}:{width}"

        if not destination.is_file():
            publishing.publish(transformed, destination)
            logging.info(
                f"({time.monotonic() - start:.3f}s) published {source} as {destination}"
            )

        mapping[key] = self.published_key(destination)
        return destination

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def _record_failure(self, error: AssetError) -> None:
        self.failures.append(
            AssetFailure(
                source=error.source,
                error_type=type(error).__name__,
                message=str(error),
            )
        )

    def scan_and_transform(
        self,
        source_dir: PathLike,
        output_dir: PathLike,
        extension: str,
        mapping: MutableMapping[str, str],
        widths: Sequence[int] = (),
    ) -> None:
        """Fingerprint every file of one extension in a directory.

        Only the immediate entries of source_dir are considered. A file that
        fails is logged and skipped; the rest of the batch carries on.

        Args:
            source_dir: Directory to scan
            output_dir: Directory receiving the derived files (created if absent)
            extension: File extension to match, including the dot
            mapping: Updated in place with source key -> published path
            widths: For images, extra resized variants to produce per file
        """
        source_dir = Path(source_dir)
        output_dir = Path(output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logging.error(f"Failed to create directory {output_dir}: {e}")

        try:
            entries = sorted(
                entry
                for entry in source_dir.iterdir()
                if entry.suffix == extension and entry.is_file()
            )
        except OSError as e:
            logging.error(f"Error reading directory ({source_dir}): {e}")
            return

        for entry in entries:
            for width in [None, *widths]:
                try:
                    self.fingerprint_file(entry, output_dir, mapping, width=width)
                except AssetError as e:
                    logging.error(f"Could not fingerprint file ({entry.name}): {e}")
                    self._record_failure(e)
                    break  # No point producing variants of a broken file

    def combine(
        self,
        output_path: PathLike,
        mapping: MutableMapping[str, str],
        *inputs: PathLike,
    ) -> Path:
        """Combine several files into one and fingerprint the result.

        Inputs are concatenated in the given order, each followed by a blank
        line, and written to output_path. The combined file is then minified
        and published next to it under a content addressed name.

        Args:
            output_path: Intermediate combined file
            mapping: Updated in place with the bundle key -> published path
            *inputs: Files to combine, in order

        Returns:
            Path of the fingerprinted bundle

        Raises:
            CombineError: If any input cannot be read
            AssetError: If the combined file cannot be written or transformed
        """
        output_path = Path(output_path)
        parts = []
        for input_path in inputs:
            try:
                parts.append(Path(input_path).read_bytes())
            except OSError as e:
                raise CombineError(
                    f"failed to open {input_path} for bundle {output_path}: {e}",
                    output_path,
                ) from e
            parts.append(BUNDLE_SEPARATOR)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(
                f"cannot create {output_path.parent}: {e}", output_path
            ) from e
        publishing.publish_if_changed(b"".join(parts), output_path)

        key = self.source_key(output_path)
        if key in mapping:
            logging.warning(
                f"Bundle {output_path} replaces {mapping[key]} registered as {key!r}"
            )
        return self.fingerprint_file(output_path, output_path.parent, mapping)

    # ------------------------------------------------------------------
    # Full build
    # ------------------------------------------------------------------

    def run(self) -> BuildResult:
        """Build every configured asset.

        Errors for individual files and bundles are logged and collected in the
        result; this method does not raise for them.

        Returns:
            The fingerprint and optimization mappings plus any failures
        """
        cfg = self.config
        start = time.monotonic()
        self.failures = []
        fingerprints: Dict[str, str] = {}
        optimizations: Dict[str, str] = {}

        try:
            cfg.gen_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logging.error(f"Failed to create directory {cfg.gen_path}: {e}")

        for target in cfg.minify_targets:
            self.scan_and_transform(
                cfg.resolve(target.source),
                cfg.resolve(target.output),
                target.extension,
                fingerprints,
            )
        _log_elapsed("asset minification time", start)

        for bundle in cfg.bundles:
            try:
                self.combine(
                    cfg.resolve(bundle.output),
                    fingerprints,
                    *[cfg.resolve(name) for name in bundle.inputs],
                )
            except AssetError as e:
                logging.error(f"Failed to build bundle {bundle.output}: {e}")
                self._record_failure(e)
        _log_elapsed("asset bundling time", start)

        for target in cfg.image_targets:
            self.scan_and_transform(
                cfg.resolve(target.source),
                cfg.resolve(target.output),
                target.extension,
                optimizations,
                widths=cfg.responsive_widths,
            )
        _log_elapsed("image optimization time", start)

        if cfg.favicon is not None:
            try:
                generate_favicon(
                    cfg.resolve(cfg.favicon.source),
                    cfg.resolve(cfg.favicon.output),
                    site_name=cfg.favicon.site_name,
                    theme_color=cfg.favicon.theme_color,
                    tile_color=cfg.favicon.tile_color,
                    display=cfg.favicon.display,
                )
            except AssetError as e:
                logging.error(f"Failed to generate favicon: {e}")
                self._record_failure(e)
            _log_elapsed("favicon generation time", start)

        elapsed = time.monotonic() - start
        logging.info(
            f"Built {len(fingerprints)} fingerprinted and {len(optimizations)} "
            f"optimized assets in {elapsed:.3f}s ({len(self.failures)} failed)"
        )
        return BuildResult(
            fingerprints=fingerprints,
            optimizations=optimizations,
            failures=list(self.failures),
            elapsed_seconds=elapsed,
        )


def _log_elapsed(description: str, start: float) -> None:
    logging.info(f"{description}: {time.monotonic() - start:.3f}s")


def build_assets(config: PipelineConfig) -> BuildResult:
    """Run a full asset build for a configuration.

    Args:
        config: Pipeline configuration

    Returns:
        Result of the build
    """
    return AssetPipeline(config).run()
