#!/usr/bin/env python3
"""
Application Startup Script

Checks that the runtime dependencies of the pipeline are in place before
starting the FastAPI application.

Usage:
    python start_app.py
"""

import shutil
import sys

from lingua_cache.core.config.settings import Settings, get_settings


def preflight(settings: Settings) -> tuple[list[str], list[str]]:
    """
    Inspect configuration and the host.

    Returns:
        (errors, warnings); any error blocks startup
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not settings.gemini.GEMINI_API_KEY:
        errors.append("GEMINI_API_KEY is not set")

    store = settings.object_store
    if not (store.SPACES_BUCKET and store.SPACES_KEY and store.SPACES_SECRET):
        message = "Object store (SPACES_BUCKET / SPACES_KEY / SPACES_SECRET) is not configured"
        if settings.app.ENVIRONMENT == "production":
            errors.append(message)
        else:
            warnings.append(f"{message}; running with the in-process cache only")

    ffmpeg = settings.media.FFMPEG_BINARY
    if shutil.which(ffmpeg) is None:
        # Short episodes still work; only audio over the threshold needs it
        warnings.append(f"'{ffmpeg}' not found on PATH; long audio cannot be transcoded")

    return errors, warnings


def main():
    """Validate the environment, then run uvicorn."""

    print("=" * 60)
    print("Lingua AI Result Cache - Startup")
    print("=" * 60)
    print()

    settings = get_settings()

    print("Step 1: Checking configuration and host tools...")
    errors, warnings = preflight(settings)
    for warning in warnings:
        print(f"[!] {warning}")
    if errors:
        for error in errors:
            print(f"[X] {error}")
        print("\nFix the configuration above and try again.")
        sys.exit(1)
    print("[OK] Preflight passed")

    print("\nStep 2: Starting FastAPI application...")
    print("=" * 60)
    print()

    try:
        import uvicorn

        uvicorn.run(
            "lingua_cache.application.app:app",
            host=settings.app.API_HOST,
            port=settings.app.API_PORT,
            reload=settings.app.ENVIRONMENT == "development",
            log_level=settings.logging.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        print("\n\n[!] Shutting down gracefully...")
        sys.exit(0)


if __name__ == "__main__":
    main()
