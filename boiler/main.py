#!/usr/bin/env python3
"""
Boiler - FastAPI web application scaffold with a fingerprinted asset pipeline

This module contains the FastAPI application. On startup it builds the static
assets (minified and fingerprinted stylesheets and scripts, converted images,
favicons) and installs the asset lookup helpers on the template engine before
any request is served.
"""

# Standard library imports
import contextlib
import logging
import os
import signal
from typing import Any, AsyncGenerator, Awaitable, Callable, Coroutine, List, Optional

# Third-party imports
import fastapi
import uvicorn
from fastapi import Request, Response, responses, staticfiles, templating

# Local imports
from boiler import config as config_lib
from boiler.assets import AssetManager
from boiler.core import build_assets
from boiler.logging_utils import setup_logging
from boiler.types import AssetKind, AssetRecord, BuildResult

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

# API response headers for preventing caching
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Well-known favicon URLs, mapped to the generated file names
FAVICON_FILES = [
    ("/favicon.ico", "favicon.png"),
    ("/apple-touch-icon.png", "apple-touch-icon.png"),
    ("/apple-touch-icon-precomposed.png", "apple-touch-icon.png"),
    ("/site.webmanifest", "site.webmanifest"),
    ("/browserconfig.xml", "browserconfig.xml"),
]


def get_config() -> config_lib.PipelineConfig:
    """Return the pipeline configuration for this process.

    Uses the JSON file named by the BOILER_CONFIG environment variable if set,
    otherwise the default layout.
    """
    config_path = os.environ.get("BOILER_CONFIG")
    if config_path:
        logging.info(f"Loading pipeline configuration from {config_path}")
        return config_lib.load_config(config_path)
    return config_lib.DEFAULT_CONFIG


def create_app(
    pipeline_config: Optional[config_lib.PipelineConfig] = None,
    templates_dir: str = TEMPLATES_DIR,
) -> fastapi.FastAPI:
    """Create the FastAPI application.

    Args:
        pipeline_config: Asset pipeline configuration (defaults to get_config())
        templates_dir: Directory holding the Jinja2 templates

    Returns:
        Configured FastAPI application
    """
    cfg = pipeline_config if pipeline_config is not None else get_config()
    templates = templating.Jinja2Templates(directory=templates_dir)

    @contextlib.asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
        """Build the static assets before serving any request.

        This blocks startup on purpose: pages rendered before the build would
        reference missing assets.
        """
        logging.info(f"Building assets in {cfg.static_dir}")
        result = build_assets(cfg)
        assets = AssetManager.from_build(result, static_url=cfg.static_url)
        assets.register(templates)
        app.state.build_result = result
        app.state.assets = assets
        yield
        logging.info("-----------------------------------------------")
        logging.info("Shutting down app")

    app = fastapi.FastAPI(lifespan=lifespan)
    app.state.templates = templates

    @app.middleware("http")
    async def add_cache_control_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add cache control headers to API responses to prevent caching."""
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            for name, value in NO_CACHE_HEADERS.items():
                response.headers[name] = value
        return response

    app.mount(
        cfg.static_url,
        staticfiles.StaticFiles(directory=cfg.static_dir, check_dir=False),
        name="static",
    )

    @app.get("/")
    async def index(request: fastapi.Request) -> responses.HTMLResponse:
        """Serve the landing page."""
        return templates.TemplateResponse(request=request, name="index.html")

    @app.get("/api/assets")
    async def asset_status(request: fastapi.Request) -> BuildResult:
        """Return the mappings and failures of the startup asset build."""
        result: BuildResult = request.app.state.build_result
        return result

    @app.get("/api/assets/{kind}")
    async def asset_records(
        request: fastapi.Request, kind: AssetKind
    ) -> List[AssetRecord]:
        """Return one mapping of the startup build as a sorted list."""
        result: BuildResult = request.app.state.build_result
        return result.records(kind)

    if cfg.favicon is not None:
        favicon_url = f"{cfg.static_url}/{cfg.favicon.output.strip('/')}"
        for path, name in FAVICON_FILES:
            # Use a closure to capture the current value of target
            def create_redirect_route(
                target_path: str,
            ) -> Callable[[], Coroutine[Any, Any, responses.RedirectResponse]]:
                async def redirect_route() -> responses.RedirectResponse:
                    return responses.RedirectResponse(target_path, status_code=301)

                return redirect_route

            app.get(path)(create_redirect_route(f"{favicon_url}/{name}"))

    return app


def setup_signal_handlers() -> None:
    """Log SIGTERM before handing it to the original handler.

    Note: Only registers a handler for SIGTERM, as handling SIGINT would
    interfere with the default Ctrl+C behavior that uvicorn relies on.
    """
    original_sigterm_handler = signal.getsignal(signal.SIGTERM)

    def sigterm_handler(sig: int, frame: Any) -> None:
        logging.warning("Received SIGTERM signal, beginning shutdown")
        if callable(original_sigterm_handler):
            original_sigterm_handler(sig, frame)

    signal.signal(signal.SIGTERM, sigterm_handler)


def start_app() -> fastapi.FastAPI:
    """Initialize and return the FastAPI application.

    Sets up logging based on the environment (Google Cloud Run or local).

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logging.info("***********************************************")
    logging.info("Starting app")
    setup_signal_handlers()
    return create_app()


if __name__ == "__main__":
    """Run the application directly with uvicorn when executed as a script."""
    uvicorn.run(
        "boiler.main:start_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        workers=int(os.environ.get("WEB_CONCURRENCY", 1)),
        log_level="info",
    )
