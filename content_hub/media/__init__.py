"""Media module: article images and YouTube video handling."""

from .image_generator import ImageGenerator
from .video_guardian import (
    enforce_unique_video_embeds,
    extract_youtube_id,
    get_unique_youtube_videos,
    video_embed_html,
)

__all__ = [
    "ImageGenerator",
    "enforce_unique_video_embeds",
    "extract_youtube_id",
    "get_unique_youtube_videos",
    "video_embed_html",
]
