"""
Token API server entry point.

Creates the Flask app via the application factory. Gunicorn imports
`api.wsgi:app`; running this module directly starts the development server.
"""

import sys
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))  # Project root

from api.app import create_app

# Create the application
app = create_app()


if __name__ == '__main__':
    import logging
    from config.settings import get_settings

    logger = logging.getLogger('tokenauth')
    settings = get_settings()

    logger.info(f"Starting token API server on {settings.server_addr}...")
    logger.info(f"  - Log format: {settings.log_format}")
    logger.info(f"  - Log level: {settings.log_level}")

    app.run(
        host=settings.server.server_host,
        port=settings.server.server_port,
        debug=False,
        use_reloader=False,
    )
