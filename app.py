"""postserve: static asset tree plus Markdown posts rendered to JSON."""

import logging
import os
from logging import Formatter
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

from flask import Blueprint, Flask, abort, current_app, jsonify, request, send_file
from werkzeug.security import safe_join

from config import config
from posts import PostError, PostNotFound, load_post, load_posts

logger = logging.getLogger(__name__)

site_bp = Blueprint("site", __name__)


def setup_logging(level: str = "INFO", log_path: str = "app.log") -> None:
    """
    Configure root logger with console and rotating file handlers.

    Does nothing when the root logger already has handlers, so repeated
    factory calls do not duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    log_formatter = Formatter("%(asctime)s %(levelname)s %(message)s %(filename)s:%(lineno)d")
    root.setLevel(level.upper())

    console = logging.StreamHandler()
    console.setFormatter(log_formatter)
    root.addHandler(console)

    if log_path:
        file_handler = RotatingFileHandler(log_path, maxBytes=2 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(log_formatter)
        root.addHandler(file_handler)


def resolve_asset(root: str | Path, request_path: str, confine: bool = True) -> Path | None:
    """Map a request path onto a file path under ``root``.

    With ``confine`` the result never leaves ``root``; a path that would
    escape it resolves to None. Without it the raw path is appended to the
    root as-is, ``..`` segments included.
    """
    relative = request_path.lstrip("/")
    if not confine:
        return Path(f"{os.fspath(root)}/{relative}")
    joined = safe_join(os.fspath(root), relative)
    return Path(joined) if joined is not None else None


def _send_asset(request_path: str):
    filepath = resolve_asset(
        current_app.config["ASSET_ROOT"],
        request_path,
        confine=not current_app.config["UNSAFE_PATH_CONCAT"],
    )
    if filepath is None or not filepath.is_file():
        abort(404)
    return send_file(filepath)


def _serve_posts(request_path: str):
    posts_root = current_app.config["POSTS_ROOT"]
    if "posts" in request_path:
        return jsonify([post.to_dict() for post in load_posts(posts_root)])

    # /post/<id>
    post_id = request_path.rstrip("/").rsplit("/", 1)[-1]
    return jsonify(load_post(posts_root, post_id).to_dict())


# ── Routes ────────────────────────────────────────────────────────


# Every method is answered the same way
METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


@site_bp.route("/", defaults={"path": ""}, methods=METHODS)
@site_bp.route("/<path:path>", methods=METHODS)
def dispatch(path):
    """Single entry point: index document, posts, or a file from the asset root."""
    request_path = request.path
    if request_path == "/":
        return _send_asset(current_app.config["INDEX_DOCUMENT"])
    if "post" in request_path:
        return _serve_posts(request_path)
    return _send_asset(request_path)


@site_bp.after_app_request
def log_request(response):
    logger.debug("%s %s -> %s", request.method, request.path, response.status_code)
    return response


def handle_post_not_found(err: PostNotFound):
    return jsonify({"error": str(err)}), 404


def handle_post_error(err: PostError):
    logger.exception("Failed to render posts for %s: %s", request.path, err)
    return jsonify({"error": "could not render posts"}), 500


def create_app(config_name: str = "default", overrides: Mapping[str, Any] | None = None) -> Flask:
    """Factory function to create and configure the Flask app."""
    config_cls = config.get(config_name, config["default"])

    # The asset root is served by the catch-all route, not Flask's static view
    flask_app = Flask(__name__, static_folder=None)
    flask_app.config.from_object(config_cls)
    if overrides:
        flask_app.config.update(overrides)

    try:
        config_cls.validate(flask_app.config)
    except ValueError as err:
        flask_app.logger.error("Configuration validation failed: %s", err)
        raise

    if not flask_app.config.get("TESTING"):
        setup_logging(flask_app.config["LOG_LEVEL"], flask_app.config["LOG_PATH"])

    # Relative roots are taken from the working directory
    asset_root = Path(flask_app.config["ASSET_ROOT"]).resolve()
    posts_root = flask_app.config["POSTS_ROOT"]
    flask_app.config["ASSET_ROOT"] = asset_root
    flask_app.config["POSTS_ROOT"] = Path(posts_root).resolve() if posts_root else asset_root / "posts"

    if flask_app.config["UNSAFE_PATH_CONCAT"]:
        logger.warning("UNSAFE_PATH_CONCAT is on: request paths are not confined to %s", asset_root)

    flask_app.register_blueprint(site_bp)
    flask_app.register_error_handler(PostNotFound, handle_post_not_found)
    flask_app.register_error_handler(PostError, handle_post_error)

    logger.info("Serving %s (posts from %s)", asset_root, flask_app.config["POSTS_ROOT"])
    return flask_app


def main() -> None:
    """Run the development server with the config named by $APP_CONFIG."""
    app = create_app(os.getenv("APP_CONFIG", "default"))
    app.run(host=app.config["HOST"], port=app.config["PORT"], threaded=True)


if __name__ == "__main__":
    main()
