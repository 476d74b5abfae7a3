from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData
from flask_migrate import Migrate


# 1. Create extension instances WITHOUT an app
# They will be "connected" to the app inside the factory

# Define naming convention for SQLAlchemy
convention = {
    "ix": 'ix_%(column_0_label)s',
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}
metadata = MetaData(naming_convention=convention)

db = SQLAlchemy(metadata=metadata)
migrate = Migrate()

from flask_login import LoginManager
login_manager = LoginManager()


def create_app(config_class='config.Config', llm_provider=None, clock=None):
    """
    Application Factory Function

    ``llm_provider`` and ``clock`` override the collaborators built from
    config; tests pass stubs here.
    """

    app = Flask(__name__, instance_relative_config=True)

    # Load configuration from the config.py file
    app.config.from_object(config_class)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Core services live on app.extensions, one instance per app
    from .services import init_services
    init_services(app, llm_provider=llm_provider, clock=clock)

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register Blueprints
    # Imports are *inside* the factory to avoid circular import issues
    with app.app_context():
        from .auth.routes import auth_bp
        from .events_routes import events_bp
        from .chat_routes import chat_bp
        from .roles_routes import roles_bp

        # Import models so SQLAlchemy knows about them
        from . import models

        app.register_blueprint(auth_bp)
        app.register_blueprint(events_bp)
        app.register_blueprint(chat_bp)
        app.register_blueprint(roles_bp)

    # Register CLI commands
    from momfit.commands.seed_roles import seed_roles
    from momfit.commands.create_community import create_community
    from momfit.commands.create_user import create_user
    from momfit.commands.assign_role import assign_role

    app.cli.add_command(seed_roles)
    app.cli.add_command(create_community)
    app.cli.add_command(create_user)
    app.cli.add_command(assign_role)

    return app
