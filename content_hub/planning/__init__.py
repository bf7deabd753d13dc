"""Planning module: turns topics, keywords and crawled pages into worklist items."""

from .planner import (
    PlanningError,
    plan_cluster,
    plan_from_keyword,
    plan_link_optimization,
    plan_pillars,
    plan_rewrites,
)

__all__ = [
    "PlanningError",
    "plan_cluster",
    "plan_from_keyword",
    "plan_link_optimization",
    "plan_pillars",
    "plan_rewrites",
]
