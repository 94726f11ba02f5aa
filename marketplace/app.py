"""Rental marketplace Flask application"""

import logging
import sys

from flask import Flask, jsonify
from flask_restx import Api
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_compress import Compress
import structlog
from datetime import datetime, timezone
from werkzeug.exceptions import HTTPException

from marketplace.config.settings import settings
from marketplace.api.routes import register_routes
from marketplace.database.documents import build_store
from marketplace.services.container import ServiceContainer
from marketplace.services.geocoding import Geocoder
from marketplace.utils.auth import TokenVerifier
from marketplace.utils.cache import jwks_cache
from marketplace.utils.exceptions import MarketplaceException, StorageError
from marketplace.utils.monitoring import PerformanceMonitor, add_performance_monitoring, get_performance_report

logger = structlog.get_logger(__name__)


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging"""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def register_error_handlers(api: Api) -> None:
    """Map exceptions to JSON error responses"""

    @api.errorhandler(MarketplaceException)
    def handle_marketplace_exception(error):
        """Handle domain exceptions with their own status code"""
        code = error.status_code
        if code >= 500:
            logger.error("Request failed", error=str(error), type=type(error).__name__,
                         cause=repr(error.__cause__) if error.__cause__ else None)
            message = "An internal server error occurred"
        else:
            logger.info("Request rejected", error=str(error), type=type(error).__name__, status=code)
            message = error.message

        body = {"error": type(error).__name__, "message": message}
        if error.errors and code < 500:
            body["errors"] = error.errors
        return body, code

    @api.errorhandler(Exception)
    def handle_unexpected(error):
        """Pass HTTP errors through, hide everything else behind a 500"""
        if isinstance(error, HTTPException):
            return {"error": type(error).__name__, "message": error.description}, error.code

        logger.exception("Unhandled exception", error=str(error), type=type(error).__name__)
        return {"error": "InternalServerError", "message": "An internal server error occurred"}, 500


def create_app(config_name: str = "development", store=None, token_verifier=None, geocoder=None) -> Flask:
    """Create and configure Flask application"""
    testing = config_name == "testing"
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    # Create Flask app
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.SECRET_KEY
    app.config["DEBUG"] = settings.DEBUG and not testing
    app.config["TESTING"] = testing
    app.config["RESTX_ERROR_404_HELP"] = False
    app.config["RATELIMIT_ENABLED"] = not testing

    CORS(app,
         origins=settings.ALLOWED_ORIGINS,
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         supports_credentials=True
    )

    # Configure Response Compression
    Compress(app)
    app.config['COMPRESS_ALGORITHM'] = 'gzip'
    app.config['COMPRESS_LEVEL'] = 6
    app.config['COMPRESS_MIN_SIZE'] = 500

    # Configure Rate Limiting
    limiter = Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=[
            f"{settings.RATE_LIMIT_PER_MINUTE} per minute",
            f"{settings.RATE_LIMIT_PER_HOUR} per hour"
        ],
        storage_uri=settings.RATELIMIT_STORAGE_URI
    )

    # Configure API
    api = Api(
        app,
        version="1.0",
        title="Rental Marketplace API",
        description="Listings, favorites, leases and applications for a rental marketplace",
        doc="/docs" if settings.DEBUG else False,
        prefix=settings.API_PREFIX
    )

    if store is None:
        settings.validate()
        store = build_store(settings)
    if geocoder is None and settings.GEOCODING_ENABLED and not testing:
        geocoder = Geocoder()

    # Store extensions on app
    app.limiter = limiter
    app.api = api
    app.store = store
    app.services = ServiceContainer(store, settings, geocoder)
    app.token_verifier = token_verifier or TokenVerifier.from_settings(settings)
    app.monitor = PerformanceMonitor(alert_threshold_seconds=settings.SLOW_REQUEST_SECONDS)

    register_error_handlers(api)
    register_routes(api)
    add_performance_monitoring(app, app.monitor)

    @app.route("/metrics/performance")
    def performance_metrics():
        """Get performance metrics"""
        report = get_performance_report(app.monitor)
        report["jwks_cache"] = jwks_cache.get_stats()
        return jsonify(report)

    # Health check endpoint (outside API prefix)
    @app.route("/health", methods=["GET"])
    def health_check():
        """Report whether the document store answers"""
        health_status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "storage_backend": type(store).__name__,
            "services": {}
        }

        try:
            store.ping()
            health_status["services"]["store"] = {"status": "healthy"}
        except StorageError as e:
            health_status["services"]["store"] = {"status": "unhealthy", "error": str(e)}
            health_status["status"] = "degraded"

        status_code = 200 if health_status["status"] == "healthy" else 503
        return jsonify(health_status), status_code

    logger.info(
        "Marketplace app created",
        config=config_name,
        debug=app.config["DEBUG"],
        storage_backend=type(store).__name__,
        geocoding_enabled=geocoder is not None,
        rate_limiting_enabled=app.config["RATELIMIT_ENABLED"]
    )

    return app
