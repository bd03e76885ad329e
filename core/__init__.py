# =============================================================================
# core/__init__.py
# =============================================================================
# Business logic with no agent or MCP framework imports:
#
#   models.py     itinerary (pydantic), POI and knowledge records
#   itinerary.py  build / feasibility validation rules
#   poi.py        Nominatim + Overpass lookup, degrade-to-empty policy
#   knowledge.py  Wikivoyage fetch-or-cache, section ranking, tips
#   config.py     Settings from the environment
#   errors.py     exception taxonomy
#
# Everything here can be exercised with fake collaborators and no network.
# =============================================================================
