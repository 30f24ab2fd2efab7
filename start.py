#!/usr/bin/env python3
"""
Server start script

Serves the coin functions with uvicorn. The platform-provided PORT
environment variable wins over APP_PORT.
"""
import os
import sys

from core.config import settings, validate_configuration

if __name__ == "__main__":
    try:
        validate_configuration()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    port = int(os.getenv("PORT", settings.app_port))

    # Import and run uvicorn programmatically
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=port,
        log_level=settings.log_level.lower(),
        reload=settings.debug and settings.environment == "development",
    )
