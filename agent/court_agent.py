# =============================================================================
# agent/court_agent.py  -  Google ADK Agent wired to the Court Spotter tools
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds a Google ADK agent that uses the MCP server in tools/ as its only
#   capability.  It is a local harness for trying the tool the way a real
#   MCP client would: ADK spawns the server over stdio and the LLM decides
#   when to call get_court_availabilities.
#
# HOW IT'S WIRED:
#
#     ADK Agent ──(LiteLlm)──▶ LLM (AGENT_MODEL, default GPT-4o via OpenRouter)
#         │
#         └──(MCPToolset, stdio)──▶ python -m tools.mcp_server
#                                          │
#                                          ▼
#                                  core/ → Court Spotter API
#
#   LiteLlm reads the provider API key (e.g. OPENROUTER_API_KEY) from the
#   environment.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_court_advisor_prompt
from core import config


def create_agent() -> Agent:
    """Create the padel court advisor agent.

    The MCP server runs with the same interpreter as this process and from
    the project root, so `core` and `tools` import the same way they do here.
    """
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command=sys.executable,
            args=["-m", "tools.mcp_server"],
            cwd=project_root,
            env={**os.environ, "MCP_TRANSPORT": "stdio"},
        ),
    )

    return Agent(
        name="padel_court_advisor",
        model=LiteLlm(model=config.AGENT_MODEL),
        instruction=get_court_advisor_prompt(),
        tools=[mcp_tools],
    )
