"""Network module for resilient HTTP access."""

from .fetcher import ResilientFetcher, build_proxy_url, is_authenticated

__all__ = ["ResilientFetcher", "build_proxy_url", "is_authenticated"]
