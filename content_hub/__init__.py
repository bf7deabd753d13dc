"""
Content Hub Engine

An AI-driven content pipeline that:
- Plans pillar and cluster articles from a topic or a crawled sitemap
- Writes articles section-by-section through interchangeable LLM providers
- Repairs malformed AI output (JSON, HTML fences, hallucinated link slugs)
- Enforces internal-link quotas and unique video embeds
- Gates finished articles on word count and human-likeness
"""

__version__ = "0.1.0"
