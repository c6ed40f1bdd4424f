"""Record lifecycle engine."""

from scriptorium.engine.media_data import MediaData, media_data
from scriptorium.engine.post_content import PostContent, post_content
from scriptorium.engine.post_data import PostData, post_data

__all__ = ["MediaData", "PostContent", "PostData", "media_data", "post_content", "post_data"]
