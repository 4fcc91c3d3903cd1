import argparse
import atexit
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Import configuration management
sys.path.append(str(Path(__file__).parent.parent))
from config_manager import DEFAULT_SESSION_SECRET, ConfigManager

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from card_service import ContentStore, MongoContentStore, StoreUnavailable, setup_logging

from app.card_delivery.factory import create_card_delivery_module, create_content_store
from app.event_tracking.factory import create_event_tracking_module
from app.rate_limit.factory import create_rate_limit_module

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
SERVICE_NAME = "Card Delivery API"
SERVICE_VERSION = "1.0.0"


def create_app(
    config_manager: Optional[ConfigManager] = None,
    content_store: Optional[ContentStore] = None,
    user_data_dir: Optional[Path] = None,
    scorer=None,
    prewarm: bool = True,
) -> Flask:
    """Build the Flask application.

    Args:
        config_manager: Configuration source (defaults to file + environment)
        content_store: Backing content store; built from configuration when omitted
        user_data_dir: Directory for the event log; overrides configuration
        scorer: Optional relevance scorer injected into the card engine
        prewarm: Whether to populate the content cache before serving
    """
    config_manager = config_manager or ConfigManager()
    app_config = config_manager.get_app_config()
    session_config = config_manager.get_session_config()
    cache_config = config_manager.get_cache_config()
    store_config = config_manager.get_store_config()
    ui_config = config_manager.get_ui_config()

    app = Flask(__name__)
    app.config["DEBUG"] = app_config.debug
    app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_proto = 1,     # trust 1 hop for X-Forwarded-Proto
            x_host  = 1,     # trust 1 hop for X-Forwarded-Host
            x_prefix= 1)     # trust 1 hop for X-Forwarded-Prefix

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    if content_store is None:
        content_store = create_content_store(store_config, base_dir=BASE_DIR)
        if isinstance(content_store, MongoContentStore):
            if store_config.ensure_indexes:
                try:
                    content_store.ensure_indexes()
                except StoreUnavailable as exc:
                    logger.warning(f"Could not ensure content indexes: {exc}")
            atexit.register(content_store.close)

    if user_data_dir is None:
        user_data_dir = BASE_DIR / config_manager.get_paths_config().user_data_dir

    event_tracking_module = create_event_tracking_module(Path(user_data_dir))

    card_delivery_module = create_card_delivery_module(
        session_config=session_config,
        cache_config=cache_config,
        content_store=content_store,
        event_tracker=event_tracking_module["service"],
        scorer=scorer,
    )

    rate_limit_module = create_rate_limit_module(config_manager.get_rate_limit_config())
    rate_limit_module["register"](app)

    app.register_blueprint(card_delivery_module["blueprint"])

    app.extensions["card_delivery"] = card_delivery_module
    app.extensions["event_tracking"] = event_tracking_module
    app.extensions["rate_limit"] = rate_limit_module

    if session_config.secret == DEFAULT_SESSION_SECRET:
        logger.warning("Using the built-in session secret; set SESSION_SECRET in production")

    if prewarm:
        card_delivery_module["engine"].prewarm()

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    @app.get("/")
    def root():
        """Service banner."""
        return jsonify({
            "success": True,
            "message": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "getCard": "GET /api/card",
                "submitFeedback": "POST /api/card/:cardId/feedback",
                "showLater": "POST /api/card/:cardId/later",
                "share": "POST /api/card/:cardId/share",
                "reset": "POST /api/reset",
                "getStats": "GET /api/stats",
                "config": "GET /api/config",
                "health": "GET /api/health"
            }
        })

    @app.get("/api/config")
    def frontend_config():
        """Frontend feature flags."""
        return jsonify({
            "success": True,
            "config": {
                "showCardStats": ui_config.show_card_stats,
                "showOnlyCardsWithImages": cache_config.only_with_images,
                "contentUrl": ui_config.content_url
            }
        })

    @app.get("/api/health")
    def health():
        """Health check endpoint for monitoring tools."""
        return jsonify({
            "success": True,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(exc):
        logger.error(f"Content store unavailable: {exc}")
        return jsonify({"success": False, "error": "Content store unavailable"}), 503

    @app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({"success": False, "error": "Endpoint not found"}), 404

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "error": exc.description}), exc.code
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return app


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    # Parse command line arguments
    parser = argparse.ArgumentParser(description="Personalized card delivery service")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--config", type=str, default="card_service_config.json", help="Configuration file")
    args = parser.parse_args()

    manager = ConfigManager(args.config)
    app_config = manager.get_app_config()

    # Override configuration with command line arguments
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    setup_logging(debug=app_config.debug)

    store_config = manager.get_store_config()
    cache_config = manager.get_cache_config()
    logger.info("Configuration loaded:")
    logger.info(f"   - Content backend: {store_config.backend}")
    logger.info(f"   - Cache TTL: {cache_config.ttl_seconds}s (images only: {cache_config.only_with_images})")
    logger.info(f"   - Server: {app_config.host}:{app_config.port}")

    application = create_app(manager)
    application.run(
        host=app_config.host,
        port=app_config.port,
        debug=app_config.debug
    )
