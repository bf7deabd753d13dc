"""
SERP intelligence via the Serper API.

Fetches the top organic results and "People Also Ask" questions for a
topic, plus a small pool of YouTube candidates from up to three video
queries. Requests carry the API key, so the fetcher sends them direct.
"""

from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from content_hub.errors import ContentHubError, ProviderError
from content_hub.media.video_guardian import extract_youtube_id, get_unique_youtube_videos
from content_hub.network.fetcher import ResilientFetcher
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

SERPER_SEARCH_URL = "https://google.serper.dev/search"
SERPER_VIDEOS_URL = "https://google.serper.dev/videos"
MAX_ORGANIC_RESULTS = 10
MAX_VIDEO_CANDIDATES = 10


class SerpResult(BaseModel):
    """Everything the outline stage learns from the live SERP."""

    serp_data: list[dict[str, Any]] = Field(default_factory=list, description="Top organic results")
    people_also_ask: list[str] = Field(default_factory=list, description="PAA questions")
    youtube_videos: Optional[list[dict[str, Any]]] = Field(default=None, description="Unique videos to embed")


def video_queries(topic: str) -> list[str]:
    """Video search queries, most specific first."""
    return [f'"{topic}" tutorial', f"how to {topic}", topic]


class SerpClient:
    """
    Serper search client.

    Example:
        async with ResilientFetcher() as fetcher:
            serp = await SerpClient(fetcher, api_key).research("home composting")
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        api_key: str,
        video_count: int = 2,
        timeout: float = 30.0,
    ):
        self.fetcher = fetcher
        self.api_key = api_key
        self.video_count = video_count
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _post(self, url: str, query: str) -> dict[str, Any]:
        response = await self.fetcher.fetch(
            url,
            method="POST",
            headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
            json={"q": query},
            timeout=self.timeout,
        )
        if not response.is_success:
            raise ProviderError(f"Serper API failed with status {response.status_code}", status_code=response.status_code)
        data = response.json()
        return data if isinstance(data, dict) else {}

    async def search(self, topic: str) -> tuple[list[dict[str, Any]], list[str]]:
        """
        Run the organic search for a topic.

        Returns:
            (top organic results, people-also-ask questions)
        """
        data = await self._post(SERPER_SEARCH_URL, topic)
        organic = [r for r in data.get("organic") or [] if isinstance(r, dict)][:MAX_ORGANIC_RESULTS]
        questions = [
            p["question"] for p in data.get("peopleAlsoAsk") or []
            if isinstance(p, dict) and isinstance(p.get("question"), str)
        ]
        return organic, questions

    async def find_videos(self, topic: str) -> Optional[list[dict[str, Any]]]:
        """Collect YouTube candidates across the video queries and pick unique ones."""
        candidates: dict[str, dict[str, Any]] = {}

        for query in video_queries(topic):
            if len(candidates) >= MAX_VIDEO_CANDIDATES:
                break
            try:
                data = await self._post(SERPER_VIDEOS_URL, query)
            except (ContentHubError, httpx.HTTPError, ValueError) as e:
                logger.warning(f"Video search failed for '{query}': {e}")
                continue

            for video in data.get("videos") or []:
                if not isinstance(video, dict):
                    continue
                video_id = extract_youtube_id(video.get("link"))
                if video_id and video_id not in candidates:
                    candidates[video_id] = {**video, "videoId": video_id}

        logger.info(f"Found {len(candidates)} video candidate(s) for '{topic}'")
        return get_unique_youtube_videos(list(candidates.values()), self.video_count)

    async def research(self, topic: str) -> SerpResult:
        """
        Organic results, PAA questions and videos for a topic.

        Raises:
            ProviderError: If Serper answers with a non-2xx status
            httpx.HTTPError: If the request itself fails
        """
        organic, questions = await self.search(topic)
        videos = await self.find_videos(topic)
        logger.info(f"SERP for '{topic}': {len(organic)} results, {len(questions)} PAA questions")
        return SerpResult(serp_data=organic, people_also_ask=questions, youtube_videos=videos)
