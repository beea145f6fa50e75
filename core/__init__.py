# =============================================================================
# core/__init__.py
# =============================================================================
# Business logic for the Court Spotter MCP server: data models, the HTTP
# client for the Court Spotter API, and the availability search itself.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports Google ADK or FastMCP.  The tools/ layer
#   wraps it for MCP; the agent/ layer only talks to it through tools/.
# =============================================================================
