from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate, jwt, ma, mail
from .middleware.request_id import init_request_id
from .swagger_config import swagger_template

load_dotenv()


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    Swagger(app, template=swagger_template(app))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    mail.init_app(app)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Models must be imported before create_all / migrations see the metadata
    from . import models  # noqa: F401
    from .services import EXTENSION_KEY, build_services
    from .cli import register_cli

    app.extensions[EXTENSION_KEY] = build_services(db.session, app.config)
    register_cli(app)

    # Blueprint imports
    from .api.communities.routes import communities_bp
    from .api.poll.routes import polls_bp
    from .api.voting.routes import voting_bp
    from .api.results.routes import results_bp
    from .api.comments.routes import comments_bp

    # Blueprints
    app.register_blueprint(communities_bp, url_prefix="/api/communities")
    app.register_blueprint(polls_bp, url_prefix="/api/polls")
    app.register_blueprint(voting_bp, url_prefix="/api/polls")
    app.register_blueprint(results_bp, url_prefix="/api/polls")
    app.register_blueprint(comments_bp, url_prefix="/api/polls")

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    return app
