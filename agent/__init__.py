# =============================================================================
# agent/__init__.py
# =============================================================================
# A Google ADK agent that uses the Court Spotter MCP server as its only tool.
#
# ARCHITECTURAL ROLE:
#   The agent turns a conversational request ("any outdoor courts Saturday
#   morning?") into tool calls and presents the answer.  It holds no
#   business logic: it reaches core/ only through the MCP server in tools/.
# =============================================================================
