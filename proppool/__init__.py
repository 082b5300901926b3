import logging
import os

from flask import Flask
from flask_caching import Cache
from flask_sqlalchemy import SQLAlchemy

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
cache = Cache()


def create_app(config_name=None):
    app = Flask(__name__)

    # Determine configuration
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Initialize extensions
    db.init_app(app)
    cache.init_app(app)

    # Setup logging
    from proppool.utils.logging_config import setup_logging

    setup_logging(app)

    # Show configuration warnings
    show_config_warnings(app, config_name)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


def show_config_warnings(app, config_name):
    """Log configuration status and warnings"""
    app.logger.info(f"Prop Pool starting with '{config_name}' configuration")

    if config_name == "production" and app.config.get("DEBUG"):
        app.logger.warning("DEBUG mode is enabled in production!")

    db_url = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if "sqlite" in db_url:
        if "memory" in db_url:
            app.logger.info("Using SQLite database: in-memory (testing)")
        else:
            app.logger.info("Using SQLite database: proppool.db file")
    elif "postgresql" in db_url:
        # Extract host and database name for display (hide password)
        import re

        match = re.search(r"postgresql.*?://.*?@([^:/]+):?(\d+)?/([^?]+)", db_url)
        if match:
            host, port, dbname = match.groups()
            app.logger.info(f"Using PostgreSQL database {dbname} at {host}:{port or '5432'}")
        else:
            app.logger.info("Using PostgreSQL database")
    else:
        app.logger.info(
            f"Using database: {db_url.split('://')[0] if '://' in db_url else 'Unknown'}"
        )


from proppool import models  # noqa: F401, E402 - imported for model registration
