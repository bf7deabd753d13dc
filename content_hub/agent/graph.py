"""
Graph module - LangGraph StateGraph for generating one content item.

Graph structure:
    (entry: link-optimizer item) → link_optimizer → END
    (entry: any other item) → keyword_intelligence → outline → write_sections →
    images → post_process → END

Every edge between stages goes through a cancellation router: a cancelled
item ends the graph at the next boundary without a ``result``.
"""

from langgraph.graph import END, START, StateGraph

from .nodes import (
    images_node,
    keyword_intelligence_node,
    link_optimizer_node,
    outline_node,
    post_process_node,
    write_sections_node,
)
from .state import GenerationState, ItemType


def entry_router(state: GenerationState) -> str:
    """
    Pick the first node for an item.

    Returns:
        "link_optimizer" for link-optimizer items, "keyword_intelligence" otherwise
    """
    if state["item"].type == ItemType.LINK_OPTIMIZER:
        return "link_optimizer"
    return "keyword_intelligence"


def is_cancelled(state: GenerationState) -> bool:
    if state.get("cancelled"):
        return True
    runtime = state.get("runtime")
    return bool(runtime and runtime.is_cancelled(state["item"].id))


def _continue_to(next_node: str):
    """Build a router that proceeds to ``next_node`` unless the item was cancelled."""

    def _router(state: GenerationState) -> str:
        return "cancelled" if is_cancelled(state) else next_node

    _router.__name__ = f"route_to_{next_node}"
    return _router


def build_generation_graph() -> StateGraph:
    """
    Build the per-item generation graph.

    Returns:
        Compiled LangGraph StateGraph
    """
    graph = StateGraph(GenerationState)

    graph.add_node("keyword_intelligence", keyword_intelligence_node)
    graph.add_node("outline", outline_node)
    graph.add_node("write_sections", write_sections_node)
    graph.add_node("images", images_node)
    graph.add_node("post_process", post_process_node)
    graph.add_node("link_optimizer", link_optimizer_node)

    graph.add_conditional_edges(
        START,
        entry_router,
        {
            "link_optimizer": "link_optimizer",
            "keyword_intelligence": "keyword_intelligence",
        },
    )

    # Linear pipeline, with a cancellation check at every boundary
    for current, following in (
        ("keyword_intelligence", "outline"),
        ("outline", "write_sections"),
        ("write_sections", "images"),
        ("images", "post_process"),
    ):
        graph.add_conditional_edges(
            current,
            _continue_to(following),
            {following: following, "cancelled": END},
        )

    graph.add_edge("post_process", END)
    graph.add_edge("link_optimizer", END)

    return graph.compile()
