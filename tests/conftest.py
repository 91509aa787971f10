"""Shared fixtures: a throwaway asset tree and an app serving it."""

import pytest

from app import create_app


@pytest.fixture
def asset_root(tmp_path):
    root = tmp_path / "assets"
    root.mkdir()
    (root / "index.html").write_text("<html><body>home</body></html>", encoding="utf-8")
    (root / "app.js").write_text("console.log('hi');\n", encoding="utf-8")
    (root / "css").mkdir()
    (root / "css" / "app.css").write_text("body { margin: 0; }\n", encoding="utf-8")

    posts = root / "posts"
    posts.mkdir()
    for post_id, body in (("1", "# First\n\nHello."), ("2", "# Second"), ("3", "# Third")):
        (posts / post_id).mkdir()
        (posts / post_id / "index.md").write_text(body, encoding="utf-8")

    # Outside the root, reachable only through raw concatenation
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root


@pytest.fixture
def app(asset_root):
    return create_app("testing", {"ASSET_ROOT": str(asset_root), "POSTS_ROOT": "", "UNSAFE_PATH_CONCAT": False})


@pytest.fixture
def client(app):
    return app.test_client()
