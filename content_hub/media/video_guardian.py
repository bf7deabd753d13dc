"""
YouTube video selection and duplicate-embed correction.

Videos are plain dicts as returned by the video search (``title``,
``link``/``url``, optional ``videoId``/``embedUrl``). Selected videos
gain a canonical ``videoId`` and ``embedUrl``.
"""

import re
from typing import Any, Optional

from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

YOUTUBE_URL = re.compile(r"^.*(youtu.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")
EMBED_ID = re.compile(r"embed/([^?&]+)")
WATCH_ID = re.compile(r"[?&]v=([^&]+)")
SHORT_ID = re.compile(r"youtu\.be/([^?&]+)")
YOUTUBE_IFRAME = re.compile(
    r'<iframe[^>]+src="https://www\.youtube\.com/embed/([^"?&]+)[^>]*></iframe>'
)

EMBED_BASE = "https://www.youtube.com/embed/"
IFRAME_ALLOW = "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"


def extract_youtube_id(url: Optional[str]) -> Optional[str]:
    """Return the 11-character video id from any YouTube URL form, else None."""
    if not url:
        return None
    match = YOUTUBE_URL.match(url)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


def _video_id(video: dict[str, Any]) -> Optional[str]:
    if video.get("videoId"):
        return video["videoId"]
    for key, pattern in (("embedUrl", EMBED_ID), ("url", WATCH_ID), ("url", SHORT_ID), ("link", WATCH_ID), ("link", SHORT_ID)):
        value = video.get(key)
        if isinstance(value, str):
            match = pattern.search(value)
            if match:
                return match.group(1)
    return None


def get_unique_youtube_videos(videos: Optional[list[dict[str, Any]]], count: int = 2) -> Optional[list[dict[str, Any]]]:
    """
    Pick up to ``count`` videos with distinct ids, in input order.

    Returns:
        Selected videos with ``videoId`` and ``embedUrl`` set, or None if none qualify
    """
    if not videos:
        logger.warning("No YouTube videos provided")
        return None

    selected: list[dict[str, Any]] = []
    used: set[str] = set()

    for video in videos:
        if len(selected) >= count:
            break
        video_id = _video_id(video)
        if not video_id:
            continue
        if video_id in used:
            logger.warning(f"Duplicate video skipped: {video_id}")
            continue
        used.add(video_id)
        selected.append({**video, "videoId": video_id, "embedUrl": f"{EMBED_BASE}{video_id}"})

    if len(selected) < count:
        logger.warning(f"Only {len(selected)} unique video(s) found, wanted {count}")

    return selected or None


def video_embed_html(video: dict[str, Any]) -> str:
    """Responsive iframe block for one selected video."""
    title = str(video.get("title", "")).replace('"', "&quot;")
    return (
        f'<div class="video-container"><iframe width="100%" height="410" '
        f'src="{video["embedUrl"]}" title="{title}" frameborder="0" '
        f'allow="{IFRAME_ALLOW}" allowfullscreen></iframe></div>'
    )


def enforce_unique_video_embeds(content: str, videos: Optional[list[dict[str, Any]]]) -> str:
    """
    Fix the case where the same video was embedded twice.

    Only when every YouTube iframe shares one id: the second iframe's id
    is replaced with the second selected video's id. Everything else in
    the markup, including the first iframe, is left untouched.
    """
    if not content or not videos or len(videos) < 2:
        return content

    matches = list(YOUTUBE_IFRAME.finditer(content))
    if len(matches) < 2:
        return content

    ids = [m.group(1) for m in matches]
    if len(set(ids)) != 1:
        return content

    duplicate_id = ids[0]
    replacement = videos[1].get("videoId")
    if not replacement or replacement == duplicate_id:
        return content

    logger.warning(f"Duplicate video id '{duplicate_id}' embedded twice; replacing second with '{replacement}'")
    start, end = matches[1].span(1)
    return content[:start] + replacement + content[end:]
