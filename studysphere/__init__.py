from flask import Flask
from flasgger import Swagger
from prometheus_flask_exporter import PrometheusMetrics
from flask_cors import CORS
from pathlib import Path
import os

from .logging_setup import setup_logging
from .errors import register_error_handlers
from .routes import health, homework_routes, note_routes, research_routes, quiz_routes
from .config import DevelopmentConfig, ProductionConfig, TestingConfig

__version__ = "1.0.0"


def create_app(config_name: str = "development"):
    app = Flask(__name__)

    config_map = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }
    app.config.from_object(config_map.get(config_name.lower(), DevelopmentConfig))

    setup_logging(app)

    # CORS from CORS_ORIGINS
    # - unset or '*'  -> any origin
    # - "https://app.example.com,https://admin.example.com" -> only those
    cors_origin = os.getenv("CORS_ORIGINS", "*").strip()
    cors_common_kwargs = dict(
        supports_credentials=False,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "X-Requested-With",
            "Accept",
            "Origin",
            "User-Agent",
            "Cache-Control",
            "Pragma",
        ],
    )
    if cors_origin == "*" or cors_origin == "":
        CORS(app, resources={r"/*": {"origins": "*"}}, **cors_common_kwargs)
    else:
        origins_list = [o.strip() for o in cors_origin.split(",") if o.strip()]
        CORS(app, resources={r"/*": {"origins": origins_list}}, **cors_common_kwargs)

    Path(app.config["UPLOAD_FOLDER"]).mkdir(parents=True, exist_ok=True)

    from .models import init_app as init_models
    init_models(app)

    register_error_handlers(app)

    from .services.collaborators import init_app as init_collaborators
    init_collaborators(app)

    from .tasks.celery_app import init_celery
    init_celery(app)

    # Swagger
    swagger_template = {
        "swagger": "2.0",
        "info": {
            "title": "StudySphere API",
            "description": "Homework solving, lecture notes, research-paper analysis and quizzes.",
            "version": __version__,
        },
        "basePath": "/",
        "schemes": ["https", "http"],
        "securityDefinitions": {
            "Bearer": {
                "type": "apiKey",
                "name": "Authorization",
                "in": "header",
                "description": "Bearer <access token>",
            }
        },
    }
    swagger_config = {
        "headers": [],
        "specs": [
            {
                "endpoint": "apispec_1",
                "route": "/apispec_1.json",
                "rule_filter": lambda rule: True,
                "model_filter": lambda tag: True,
            }
        ],
        "static_url_path": "/flasgger_static",
        "swagger_ui": True,
        "specs_route": "/apidocs/",
    }
    Swagger(app, template=swagger_template, config=swagger_config)

    # Blueprints
    app.register_blueprint(health.bp)
    app.register_blueprint(homework_routes.bp, url_prefix="/api/homework")
    app.register_blueprint(note_routes.bp, url_prefix="/api/notes")
    app.register_blueprint(research_routes.bp, url_prefix="/api/research")
    app.register_blueprint(quiz_routes.bp, url_prefix="/api/quiz")

    # Metrics
    metrics = PrometheusMetrics(app, path="/metrics")
    metrics.info("app_info", "StudySphere service", version=__version__)

    return app
