"""
odata_builder.api - Run as module

Usage: python -m odata_builder.api
"""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv


def main():
    """Run the API gateway server."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    host = os.environ.get("ODATA_HOST", "0.0.0.0")
    port = int(os.environ.get("ODATA_PORT", "5050"))
    reload = os.environ.get("ODATA_RELOAD", "false").lower() == "true"
    log_level = os.environ.get("ODATA_LOG_LEVEL", "info")

    print(f"Starting OData query gateway on {host}:{port}")

    uvicorn.run(
        "odata_builder.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
