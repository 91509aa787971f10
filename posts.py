"""Markdown posts stored as numbered directories, rendered to HTML on request."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import markdown
from markdown.extensions import Extension
from markdown.extensions.codehilite import CodeHiliteExtension
from markdown.extensions.def_list import DefListExtension
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.tables import TableExtension

logger = logging.getLogger(__name__)

POST_FILENAME = "index.md"


def md_extensions() -> list[Extension]:
    """Extensions for one render.

    Instances hold on to the Markdown object they were registered with, so
    every render builds its own set.
    """
    return [
        FencedCodeExtension(),
        CodeHiliteExtension(css_class="highlight", guess_lang=False),
        TableExtension(),
        DefListExtension(),
    ]


class PostError(Exception):
    """A post exists but could not be read or the posts root could not be listed."""


class PostNotFound(PostError):
    """No post with the requested id."""

    def __init__(self, post_id: str):
        super().__init__(f"post {post_id!r} not found")
        self.post_id = post_id


@dataclass
class Post:
    """A rendered post. Only the HTML body is kept."""

    content: str

    def to_dict(self) -> dict[str, str]:
        return {"Content": self.content}


def render_markdown(text: str) -> str:
    md = markdown.Markdown(extensions=md_extensions())
    return md.convert(text)


def _is_post_id(post_id: str) -> bool:
    return post_id.isascii() and post_id.isdigit()


def load_post(posts_root: str | Path, post_id: str, missing_ok: bool = False) -> Post:
    """Read ``<posts_root>/<post_id>/index.md`` and render it.

    Raises PostNotFound for a malformed id or a missing file, unless
    ``missing_ok`` is set, in which case a missing file gives an empty post.
    Any other read failure raises PostError.
    """
    if not _is_post_id(post_id):
        raise PostNotFound(post_id)

    filepath = Path(posts_root) / post_id / POST_FILENAME
    try:
        text = filepath.read_text(encoding="utf-8")
    except FileNotFoundError:
        if not missing_ok:
            raise PostNotFound(post_id) from None
        logger.warning("Post %s has no %s, serving empty content", post_id, POST_FILENAME)
        return Post(content="")
    except (OSError, UnicodeDecodeError) as e:
        raise PostError(f"could not read post {post_id}: {e}") from e

    return Post(content=render_markdown(text))


def load_posts(posts_root: str | Path) -> list[Post]:
    """Render posts ``1 .. N-1`` where N is the number of entries in ``posts_root``.

    Slot 0 is never read, matching the numbering the site has always used.
    """
    try:
        entries = os.listdir(posts_root)
    except FileNotFoundError:
        logger.warning("Posts root %s does not exist", posts_root)
        return []
    except OSError as e:
        raise PostError(f"could not list posts in {posts_root}: {e}") from e

    posts = [load_post(posts_root, str(i), missing_ok=True) for i in range(1, len(entries))]
    logger.debug("Rendered %d posts from %s", len(posts), posts_root)
    return posts
