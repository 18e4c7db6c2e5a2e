"""
CardSync API - Flask Application Entry Point.

Scans business cards into contact records and appends them to
Google Sheets or Zoho Sheet spreadsheets.
"""

import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from config import get_config
from api.routes import api_bp
from cardsync.pipeline import CardSyncPipeline

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, pipeline: CardSyncPipeline = None) -> Flask:
    """Application factory for creating Flask app.

    Args:
        config_name: Configuration name (development, production, testing)
        pipeline: Prebuilt pipeline (built from the configuration if omitted)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Load configuration
    config_class = get_config(config_name)
    config_class.init_app(app)

    # Enable CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    app.extensions["cardsync"] = pipeline or CardSyncPipeline.from_config(config_class)

    # Register blueprints
    app.register_blueprint(api_bp)

    @app.route("/")
    @app.route("/api/info")
    def api_info():
        """API information endpoint."""
        return jsonify({
            "name": "CardSync API",
            "version": "1.0.0",
            "description": "Extract contact data from business cards and save it to spreadsheets",
            "endpoints": {
                "health": "/api/health",
                "status": "/api/status",
                "scan": "POST /api/scan",
                "parse_text": "POST /api/parse-text",
                "save": "POST /api/save"
            },
            "sheet_providers": ["google", "zoho", "memory"]
        })

    # Favicon handler (prevents 404 errors from browsers)
    @app.route("/favicon.ico")
    def favicon():
        """Return empty response for favicon requests."""
        return "", 204

    # Global error handlers
    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({
            "success": False,
            "error": "Not found"
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 errors."""
        return jsonify({
            "success": False,
            "error": "Method not allowed"
        }), 405

    @app.errorhandler(413)
    def request_entity_too_large(error):
        """Handle file too large errors."""
        max_mb = app.config["MAX_CONTENT_LENGTH"] // (1024 * 1024)
        return jsonify({
            "success": False,
            "error": f"File too large. Maximum size: {max_mb}MB"
        }), 413

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal error: {str(error)}")
        return jsonify({
            "success": False,
            "error": "Internal server error"
        }), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        code = getattr(error, "code", None)
        if code == 404:
            return not_found(error)
        if code == 405:
            return method_not_allowed(error)
        if code == 413:
            return request_entity_too_large(error)
        logger.error(f"Uncaught exception: {str(error)}", exc_info=True)
        return jsonify({
            "success": False,
            "error": "An unexpected error occurred"
        }), 500

    logger.info(f"Application created with config: {config_class.__name__}")

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    # Get port from environment or default to 5000
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("CARDSYNC_DEBUG", "True").lower() == "true"

    logger.info(f"Starting server on port {port}, debug={debug}")

    app.run(
        host="0.0.0.0",
        port=port,
        debug=debug
    )
