# =============================================================================
# core/config.py  -  Runtime Settings
# =============================================================================
#
# Every knob the server reads lives here, pulled from environment variables
# (a .env file in the working directory is loaded first, if present).
# All settings have defaults that work against the public Court Spotter API,
# so `python -m tools.mcp_server` runs with no configuration at all.
# =============================================================================

import os

from dotenv import load_dotenv

load_dotenv()

# --- Upstream Court Spotter API ----------------------------------------------
COURT_SPOTTER_BASE_URL: str = os.getenv(
    "COURT_SPOTTER_BASE_URL", "https://api-courtspotter.azurewebsites.net/"
)

# Reference timezone: the caller's dates are read as days in this zone, and
# it is the fallback when a club's own timezone is missing or unknown.
DEFAULT_TIMEZONE: str = os.getenv("COURT_SPOTTER_DEFAULT_TIMEZONE", "Europe/Warsaw")

HTTP_TIMEOUT_SECONDS: float = float(os.getenv("COURT_SPOTTER_TIMEOUT_SECONDS", "30"))

# Connection-level retries done by the httpx transport (connect errors only).
# The handler itself always makes a single attempt per upstream call.
HTTP_CONNECT_RETRIES: int = int(os.getenv("COURT_SPOTTER_CONNECT_RETRIES", "2"))

# How far ahead availability can be requested, counted from today (UTC).
MAX_DAYS_AHEAD: int = 14

# --- MCP server ----------------------------------------------------------------
# "stdio" for local agents (the ADK harness in agent/), "http" for hosting.
MCP_TRANSPORT: str = os.getenv("MCP_TRANSPORT", "stdio").lower()
MCP_HOST: str = os.getenv("MCP_HOST", "0.0.0.0")
MCP_PORT: int = int(os.getenv("MCP_PORT", "8000"))
MCP_PATH: str = os.getenv("MCP_PATH", "/mcp")

# --- Agent harness -------------------------------------------------------------
AGENT_MODEL: str = os.getenv("AGENT_MODEL", "openrouter/openai/gpt-4o")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
