# app/agent/graph.py
from langgraph.graph import START, END, StateGraph

from app.agent.state import MutationState
from app.agent.nodes import expand_node, load_node, reconcile_node, apply_node

builder = StateGraph(MutationState)

builder.add_node("expand", expand_node)
builder.add_node("load", load_node)
builder.add_node("reconcile", reconcile_node)
builder.add_node("apply", apply_node)

builder.add_edge(START, "expand")
builder.add_edge("expand", "load")
builder.add_edge("load", "reconcile")
builder.add_edge("reconcile", "apply")
builder.add_edge("apply", END)

# one-shot unit of work per mutation; nothing to checkpoint between requests
schedule_graph = builder.compile()
