"""Command line interface for running the API server."""
import logging
import uvicorn

from config import settings_conf
from . import create_app

def main():
    """Run the API server with settings from settings.conf."""
    logging.basicConfig(
        level=getattr(logging, settings_conf['log_level']),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    logger.info(
        f"Starting API on {settings_conf['api_host']}:{settings_conf['api_port']} "
        f"with {settings_conf['store_backend']} store"
    )
    uvicorn.run(
        create_app(settings_conf),
        host=settings_conf['api_host'],
        port=settings_conf['api_port'],
        log_level=settings_conf['log_level'].lower()
    )

if __name__ == "__main__":
    main()
