"""Application entry point for the Inkform API server."""

from pathlib import Path

import uvicorn

from inkform.api.app import create_app
from inkform.services import build_services
from inkform.utils.config import load_config
from inkform.utils.logger import setup_logging


def main(host: str = "0.0.0.0", port: int = 8000, config_path: Path | None = None) -> None:
    """Start the FastAPI application server."""
    config = load_config(config_path)
    setup_logging(config.log_level)
    app = create_app(build_services(config))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
