"""
Stage-level AI client.

Renders a named prompt and sends it to the configured provider. JSON
stages are parsed through the robust extractor so callers always receive
Python values, never raw model text.
"""

from typing import Any

from content_hub.llm.prompts import build_prompt
from content_hub.llm.providers import LLMProvider, ResponseFormat
from content_hub.parsers.json_extractor import parse_json
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)


class AIClient:
    """
    Calls pipeline stages by prompt key.

    Example:
        ai = AIClient(create_provider())
        plan = await ai.call_json("cluster_planner", "home composting")
    """

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    async def call(self, prompt_key: str, *args: Any, response_format: ResponseFormat = "json") -> str:
        """Run a stage and return the provider's raw text."""
        system, user = build_prompt(prompt_key, *args)
        logger.debug(f"Calling stage '{prompt_key}' ({response_format}, {len(user)} chars)")
        return await self.provider.generate(system, user, response_format=response_format, label=prompt_key)

    async def call_json(self, prompt_key: str, *args: Any) -> Any:
        """
        Run a JSON stage and return the parsed value.

        Raises:
            JsonExtractionError: If the answer resists every repair
        """
        text = await self.call(prompt_key, *args, response_format="json")
        return parse_json(text)

    async def call_html(self, prompt_key: str, *args: Any) -> str:
        """Run an HTML stage and return the raw (unsanitized) markup."""
        return await self.call(prompt_key, *args, response_format="html")
