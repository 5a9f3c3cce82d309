"""
Flask application factory.
"""

import logging
from typing import Optional

from flask import Flask

from ..config.loader import AppConfig, config_from_env
from ..core.gateway import ModelGateway
from ..core.selection import ModelRecommender
from ..providers import build_provider_clients

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    gateway: Optional[ModelGateway] = None,
    settings: Optional[dict] = None,
) -> Flask:
    """Create and configure the Flask app.

    The recommender is built here so that a catalog missing any model the
    recommendation table names stops the app from starting.

    Args:
        config: Catalog and gateway defaults (defaults to AGENT_ACADEMY_CONFIG)
        gateway: Prebuilt gateway, mainly for tests
        settings: Extra Flask config values

    Raises:
        CatalogConfigurationError: If the catalog cannot serve every recommendation
    """
    app = Flask(__name__)
    app.config.update(settings or {})

    if config is None:
        config = config_from_env()
    if gateway is None:
        clients = build_provider_clients(timeout=config.defaults.timeout)
        gateway = ModelGateway(config.catalog, clients, config.defaults)

    app.extensions["gateway"] = gateway
    app.extensions["recommender"] = ModelRecommender(gateway.catalog)
    logger.info(
        "Gateway ready with %d models, providers: %s",
        len(gateway.catalog),
        ", ".join(sorted(provider.value for provider in gateway.clients)) or "none",
    )

    from .routes import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    return app
