import os
from typing import Optional

from flask import Flask

from dotenv import load_dotenv

from .config import config_by_name
from .utils.logging import setup_logging
from .utils.extensions import login_manager, csrf, redis_client

load_dotenv()


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Application factory.
    Keeps startup side-effects isolated and testable.
    """
    config_name = config_name or os.getenv("FLASK_ENV", "default")
    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder="static",
        template_folder="templates",
    )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    app.config.from_object(config_by_name[config_name])
    config_by_name[config_name].init_app(app)
    app.config.from_envvar("WARDROBE_SETTINGS", silent=True)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    setup_logging(app)

    # ------------------------------------------------------------------
    # Extensions
    # ------------------------------------------------------------------
    login_manager.init_app(app)
    login_manager.login_view = "user.login"
    login_manager.login_message_category = "warning"

    csrf.init_app(app)
    redis_client.init_app(app)

    with app.app_context():
        from .blueprints import init_blueprints
        init_blueprints(app)
        from .utils.error_handlers import register_error_handlers
        register_error_handlers(app)

        from .utils import helpers

        @login_manager.user_loader
        def load_user(user_id: str) -> helpers.SessionUser | None:
            return helpers.load_session_user(user_id)

        @app.context_processor
        def inject_globals() -> dict:
            return helpers.template_globals()

        app.teardown_appcontext(helpers.close_backend)

        app.logger.info("Wardrobe %s server ready (backend: %s)", config_name, app.config["API_BASE_URL"])

    return app
