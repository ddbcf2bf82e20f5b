"""Asset lookup for templates.

This module exposes the mappings produced by an asset build to the templating
layer. Templates refer to assets by their source name, e.g.

    <link rel="stylesheet" href="{{ minify('style.css') }}">
    <img src="{{ optimize('img/photo.png') }}">

and get back the URL of the fingerprinted file. An unknown name never breaks a
page render: it resolves to the bare static URL and a warning is logged.
"""

import logging
from types import MappingProxyType
from typing import Mapping, Optional

from fastapi import templating

from boiler.types import BuildResult


class AssetManager:
    """Read-only view of the fingerprint and optimization mappings."""

    def __init__(
        self,
        fingerprints: Optional[Mapping[str, str]] = None,
        optimizations: Optional[Mapping[str, str]] = None,
        static_url: str = "/static",
    ) -> None:
        """Initialize the asset manager.

        Args:
            fingerprints: Source key to published path for minified assets
            optimizations: Source key to published path for converted images
            static_url: URL path the static root is mounted on
        """
        # Copies, so later changes by the caller are not visible here
        self.fingerprints: Mapping[str, str] = MappingProxyType(
            dict(fingerprints or {})
        )
        self.optimizations: Mapping[str, str] = MappingProxyType(
            dict(optimizations or {})
        )
        self.static_url = static_url.rstrip("/")

    @classmethod
    def from_build(cls, result: BuildResult, static_url: str) -> "AssetManager":
        """Create an asset manager from the result of a build."""
        return cls(result.fingerprints, result.optimizations, static_url=static_url)

    def _url(self, mapping: Mapping[str, str], key: str, kind: str) -> str:
        published = mapping.get(key)
        if published is None:
            logging.warning(f"No {kind} asset registered for {key!r}")
            published = ""
        return f"{self.static_url}/{published}"

    def minify(self, name: str) -> str:
        """URL of the minified, fingerprinted version of a stylesheet or script.

        Args:
            name: Source name relative to the static root (e.g. 'style.css')

        Returns:
            URL of the fingerprinted file, or the bare static URL if unknown
        """
        return self._url(self.fingerprints, name, "minified")

    def optimize(self, name: str, width: Optional[int] = None) -> str:
        """URL of the converted version of an image.

        Args:
            name: Source name relative to the static root (e.g. 'img/photo.png')
            width: Responsive variant width, if one was generated

        Returns:
            URL of the converted file, or the bare static URL if unknown
        """
        key = name if width is None else f"{name}:{width}"
        return self._url(self.optimizations, key, "optimized")

    def register(self, templates: templating.Jinja2Templates) -> None:
        """Register the lookup helpers as Jinja2 globals.

        Args:
            templates: Template renderer to install the helpers on
        """
        helpers = {
            "minify": self.minify,
            "min": self.minify,
            "optimize": self.optimize,
            "opt": self.optimize,
        }
        templates.env.globals.update(helpers)
