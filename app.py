"""Chef Assistant forwarder service.

Single entry point for the credential-guarded forwarder:
- Builds ForwarderSettings from environment configuration
- Mounts the forwarder on FORWARDER_PATH (default: /api/claude)
- Serves it with aiohttp on HOST:PORT

Run with: python app.py
"""

from aiohttp import web

from chef_assistant.forwarder.forwarder import create_app
from chef_assistant.models.models import ForwarderSettings
from chef_assistant.utils.config import config
from chef_assistant.utils.logger import logger


settings = ForwarderSettings.from_config(config)
if not settings.api_key:
    # Every POST answers 500 until the key is provided
    logger.warning("ANTHROPIC_API_KEY is not set; POST requests will fail with 500")

app = create_app(settings, path=config.FORWARDER_PATH)


if __name__ == "__main__":
    logger.info(f"Starting Chef Assistant forwarder on {config.HOST}:{config.PORT}")
    logger.info(f"Forwarding {config.FORWARDER_PATH} -> {config.ANTHROPIC_API_URL}")
    web.run_app(app, host=config.HOST, port=config.PORT, print=None)
