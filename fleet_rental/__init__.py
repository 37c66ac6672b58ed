import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from .config import Config
from .controllers.auth import bp as auth_bp
from .controllers.cars import bp as cars_bp
from .controllers.events import bp as events_bp
from .controllers.notifications import bp as notifications_bp
from .controllers.rentals import bp as rentals_bp
from .controllers.users import bp as users_bp
from .exceptions import AppError
from .models.store import Store
from .realtime import ChannelRegistry
from .utils.dates import iso, utcnow
from .utils.responses import ok, fail

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask):
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        return fail(err.message, err.status_code, err.errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        if err.code == 404:
            return fail("Route not found", 404)
        return fail(err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("Unhandled error")
        return fail("Internal server error", 500)


def create_app(config=Config):
    app = Flask(__name__)
    app.config.from_object(config)
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    Store.instance(app.config["DATA_PATH"])  # load data.pkl or start empty
    ChannelRegistry.instance(app.config["SSE_QUEUE_SIZE"])

    app.register_blueprint(auth_bp)
    app.register_blueprint(cars_bp)
    app.register_blueprint(rentals_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(events_bp)
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return ok("Server is running", {"timestamp": iso(utcnow())})

    return app
