# =============================================================================
# agent/__init__.py
# =============================================================================
# The planner's "brain": it runs one conversation turn.
#
#   prompt.py        system directive (grounding rules, today's date)
#   model.py         LiteLLM chat collaborator
#   dispatch.py      the three tools the model may call, as typed variants
#   conversation.py  MODEL_CALL / TOOL_DISPATCH loop, itinerary + sources
#
# The agent never talks HTTP or spawns processes itself.  POI and itinerary
# calls go through tools.orchestrator; knowledge lookups go to
# core.knowledge.KnowledgeCache.
# =============================================================================
