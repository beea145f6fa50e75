# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the court availability search as an MCP tool.  The tool is a
#   thin wrapper around core/availability.py: it forwards the arguments,
#   logs the call, and returns the result envelope as a JSON string.
#
# HOW IT WORKS (the flow):
#   1. An agent decides it needs free padel courts for some dates
#   2. It calls "get_court_availabilities" via MCP
#   3. FastMCP routes the call to the decorated function below
#   4. CourtAvailabilityFinder queries Court Spotter and reshapes the answer
#   5. The agent receives {"success":..., "errorMessage":..., "courtAvailabilities":[...]}
#
# RUNNING THIS SERVER:
#   a) stdio (default):   python -m tools.mcp_server
#   b) HTTP, stateless:   MCP_TRANSPORT=http python -m tools.mcp_server
#   The ADK harness in agent/ starts it over stdio as a subprocess.
# =============================================================================

import logging
import sys
from typing import Optional

from fastmcp import FastMCP

# Notice: we import from core/, never from agent/.
from core import config
from core.availability import CourtAvailabilityFinder
from core.court_spotter_client import CourtSpotterClient

# =============================================================================
# Logging Setup
# =============================================================================
# Log to STDERR: with the stdio transport, STDOUT *is* the MCP message
# stream, and a stray log line there corrupts the protocol.
#
# ANSI colours make tool traffic easy to scan:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: str) -> str:
    """Log the tool response JSON in GREEN, then return it."""
    logging.info(f"{_GREEN}  ← {tool_name} response: {result}{_RESET}")
    return result


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("court-spotter")

# One finder (and one pooled httpx client) for the whole process, created on
# first use so that importing this module never opens connections.
_finder: Optional[CourtAvailabilityFinder] = None


def get_finder() -> CourtAvailabilityFinder:
    global _finder
    if _finder is None:
        _finder = CourtAvailabilityFinder(client=CourtSpotterClient())
    return _finder


# =============================================================================
# TOOL: get_court_availabilities
# =============================================================================
# The docstring is what the LLM reads to decide when and how to call the
# tool, so it spells out the limits (14 days ahead, allowed values) and the
# shape of the answer.  Argument names are camelCase because they are the
# tool's published contract (startDate, endDate, clubNames, courtType).
# =============================================================================
@mcp.tool()
async def get_court_availabilities(
    startDate: str,
    endDate: str,
    durations: Optional[list[int]] = None,
    clubNames: Optional[list[str]] = None,
    courtType: Optional[int] = None,
) -> str:
    """Get padel court availabilities for a specific date range.

    Returns a list of available court slots with details including club
    name, court type, price, duration, and booking URL. The start time of
    each availability is converted to the local time zone of its club.
    Dates more than 14 days ahead cannot be searched.

    Args:
        startDate: Start date in YYYY-MM-DD format.
        endDate: End date in YYYY-MM-DD format (inclusive).
        durations: Optional slot lengths in minutes. Allowed: 60, 90, 120.
        clubNames: Optional club names to restrict the search to
                   (matched case-insensitively, unknown names are ignored).
        courtType: Optional court type: 0 = indoor, 1 = outdoor.

    Returns:
        A JSON string with fields:
          - success: Whether the search worked
          - errorMessage: Human-readable reason when success is false
          - courtAvailabilities: List of slots, each with availabilityId,
            padelClubId, padelClubName, courtName,
            availabilityStartTimeAtLocalTimeZone, price, bookingUrl,
            bookingPlatform, durationInMinutes, courtType
    """
    _log_request("get_court_availabilities",
                 startDate=startDate, endDate=endDate,
                 durations=durations, clubNames=clubNames,
                 courtType=courtType)

    result = await get_finder().find_court_availabilities(
        start_date=startDate,
        end_date=endDate,
        durations=durations,
        club_names=clubNames,
        court_type=courtType,
    )

    if result.success:
        _log_status(f"Found {len(result.court_availabilities)} availabilities")
    else:
        _log_status(f"Search failed: {result.error_message}")
    return _log_response("get_court_availabilities", result.to_json())


# =============================================================================
# Server entry point
# =============================================================================
def main() -> None:
    if config.MCP_TRANSPORT == "http":
        mcp.run(
            transport="http",
            host=config.MCP_HOST,
            port=config.MCP_PORT,
            path=config.MCP_PATH,
            stateless_http=True,
        )
    else:
        mcp.run()


if __name__ == "__main__":
    main()
