# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP clients and core/.  The tool
#   here:
#     1. Forwards its arguments to core.availability
#     2. Logs the call (to stderr, never stdout)
#     3. Serializes the result envelope to compact JSON
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT contain business logic (that's in core/)
#   - They do NOT know about Google ADK
# =============================================================================
