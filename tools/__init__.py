# =============================================================================
# tools/__init__.py
# =============================================================================
# MCP layer.
#
#   poi_server.py        FastMCP server exposing search_pois
#   itinerary_server.py  FastMCP server exposing build/validate_itinerary
#   orchestrator.py      MCP client side: sessions, handshake, call_tool
#   server_logging.py    STDERR logging for the servers
#
# Servers are thin wrappers around core/ functions.  They run as stdio
# subprocesses by default, or in-process when TOOL_SERVER_MODE=in_process.
# =============================================================================
