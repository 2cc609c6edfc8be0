"""Initialize the Flask app and its extensions."""

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, request, session
from werkzeug.middleware.proxy_fix import ProxyFix

from .auth.context import FlaskAuthContext
from .auth.utils import bearer_token, load_user, verify_token
from .core.constants import DEFAULT_TRANSACTION_MAX_ATTEMPTS
from .errors import AuthenticationError
from .extensions import csrf
from .serialization import RendezvousJSONProvider
from .services import build_services
from .utils import EXTENSION_KEY


def _load_firebase_credentials(app):
    """Find service account credentials: env var, then file, then ADC."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    return cred, project_id


def _init_firebase(app):
    """Initialize the Firebase Admin SDK once per process."""
    cred, project_id = _load_firebase_credentials(app)
    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)
    app.json = RendezvousJSONProvider(app)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        TRANSACTION_MAX_ATTEMPTS=int(
            os.environ.get("TRANSACTION_MAX_ATTEMPTS")
            or DEFAULT_TRANSACTION_MAX_ATTEMPTS
        ),
        LOG_LEVEL=os.environ.get("LOG_LEVEL") or "INFO",
    )

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])
    logging.getLogger(__name__).setLevel(app.config["LOG_LEVEL"])

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    db = app.config.get("FIRESTORE_CLIENT")
    if db is None:
        db = firestore.client()

    app.extensions[EXTENSION_KEY] = build_services(
        db,
        FlaskAuthContext(),
        max_attempts=app.config["TRANSACTION_MAX_ATTEMPTS"],
    )

    # Initialize extensions
    csrf.init_app(app)

    # Register blueprints
    from . import auth as auth_bp
    from . import event as event_bp
    from . import friends as friends_bp
    from . import notification as notification_bp
    from . import poll as poll_bp

    for module in (auth_bp, friends_bp, event_bp, poll_bp, notification_bp):
        # Bodies are JSON and callers authenticate with a session or a token.
        csrf.exempt(module.bp)
        app.register_blueprint(module.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def load_logged_in_user():
        """Load the user from the session or a Bearer token and store it in g."""
        g.user = None
        user_id = session.get("user_id")
        if user_id is None:
            token = bearer_token(request.headers.get("Authorization"))
            if token is None:
                return
            try:
                user_id = verify_token(token)
            except AuthenticationError:
                return

        try:
            user = load_user(current_app.extensions[EXTENSION_KEY].db, user_id)
        except Exception as e:
            current_app.logger.error(f"Error loading user {user_id}: {e}")
            session.clear()  # Clear session on error to be safe
            return

        if user is None:
            # User ID in session but no user in DB. Clear the session.
            session.clear()
            current_app.logger.warning(
                f"User {user_id} in session but not found in Firestore."
            )
            return
        g.user = user

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
