# =============================================================================
# main.py  -  Command line for the Padel Court Advisor
# =============================================================================
#
# HOW TO RUN:
#   python main.py search 2024-01-15 2024-01-16 --duration 90 --club "Padel Club"
#       Queries Court Spotter directly (no LLM) and prints the free slots,
#       or the raw result envelope with --json.
#   python main.py ask "indoor 90 minute slots tomorrow evening?"
#       One question to the ADK agent, which calls the MCP tool itself.
#   python main.py
#       Interactive chat with the agent.
#
# To serve the tool to other MCP clients instead, run the server directly:
#   python -m tools.mcp_server
# =============================================================================

import argparse
import asyncio
import sys
from typing import Optional

from dotenv import load_dotenv

# LiteLlm reads provider keys from the environment when the agent is built.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.court_agent import create_agent
from core.availability import ALLOWED_DURATIONS, CourtAvailabilityFinder
from core.court_spotter_client import CourtSpotterClient
from core.models import AvailabilitiesSearchResult, CourtType

APP_NAME = "padel_court_advisor"
USER_ID = "console_user"


# =============================================================================
# search: the handler without an LLM in the loop
# =============================================================================
def format_availabilities(result: AvailabilitiesSearchResult) -> str:
    """Render a result envelope as one line per slot, in club-local time."""
    if not result.success:
        return f"❌ {result.error_message}"
    if not result.court_availabilities:
        return "No free courts found for these dates."

    lines = [f"✅ {len(result.court_availabilities)} free slot(s):"]
    for slot in result.court_availabilities:
        lines.append(
            f"  {slot.start_time_local:%a %Y-%m-%d %H:%M}  "
            f"{slot.padel_club_name} / {slot.court_name}  "
            f"{slot.duration_in_minutes} min  {CourtType(slot.court_type).name.lower()}  "
            f"{slot.price}  {slot.booking_url}"
        )
    return "\n".join(lines)


async def run_search(args: argparse.Namespace, finder: Optional[CourtAvailabilityFinder] = None) -> int:
    """Run one search and print it.  Returns the process exit code."""
    owned = finder is None
    if finder is None:
        finder = CourtAvailabilityFinder(client=CourtSpotterClient())
    try:
        result = await finder.find_court_availabilities(
            start_date=args.start_date,
            end_date=args.end_date,
            durations=args.durations,
            club_names=args.clubs,
            court_type=args.court_type,
        )
    finally:
        if owned:
            await finder.aclose()

    print(result.to_json() if args.json else format_availabilities(result))
    return 0 if result.success else 1


# =============================================================================
# ask / chat: the ADK agent
# =============================================================================
async def _ask(runner: Runner, session_id: str, question: str) -> str:
    """Send one message to the agent, echo tool calls, return its last text."""
    user_message = types.Content(role="user", parts=[types.Part(text=question)])

    final_response = ""
    async for event in runner.run_async(
        user_id=USER_ID,
        session_id=session_id,
        new_message=user_message,
    ):
        if event.content and event.content.parts:
            for part in event.content.parts:
                if getattr(part, "text", None):
                    final_response = part.text
                if getattr(part, "function_call", None):
                    call = part.function_call
                    print(f"  🔧 {call.name}({dict(call.args or {})})")
    return final_response


async def run_agent(question: Optional[str] = None) -> int:
    """Answer one question, or chat until the user quits."""
    print("🎾 Starting the padel court advisor...")
    session_service = InMemorySessionService()
    runner = Runner(agent=create_agent(), app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    if question:
        answer = await _ask(runner, session.id, question)
        print(f"\n🤖 {answer or 'No response generated.'}")
        return 0 if answer else 1

    print("✅ Ready. Ask for free courts, e.g. 'indoor 90 min slots tomorrow evening'.")
    print("   (Type 'quit' to exit)")
    while True:
        try:
            user_input = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if user_input.lower() in ("quit", "exit", "q"):
            break
        if not user_input:
            continue

        answer = await _ask(runner, session.id, user_input)
        print(f"\n🤖 {answer or 'No response generated. The agent may have encountered an error.'}")

    print("\n👋 Goodbye!")
    return 0


# =============================================================================
# CLI
# =============================================================================
def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find free padel courts through Court Spotter.")
    commands = parser.add_subparsers(dest="command")

    search = commands.add_parser("search", help="Query Court Spotter directly, no LLM involved.")
    search.add_argument("start_date", help="First day, YYYY-MM-DD.")
    search.add_argument("end_date", help="Last day (inclusive), YYYY-MM-DD.")
    search.add_argument(
        "--duration", dest="durations", type=int, action="append", choices=ALLOWED_DURATIONS,
        help="Slot length in minutes; repeat for several.",
    )
    search.add_argument("--club", dest="clubs", action="append", help="Club name; repeat for several.")
    search.add_argument(
        "--court-type", type=CourtType.parse, help="indoor or outdoor.",
    )
    search.add_argument("--json", action="store_true", help="Print the raw result envelope.")

    ask = commands.add_parser("ask", help="Ask the agent one question.")
    ask.add_argument("question")

    return parser.parse_args(argv)


def cli(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "search":
        return asyncio.run(run_search(args))
    if args.command == "ask":
        return asyncio.run(run_agent(args.question))
    return asyncio.run(run_agent())


if __name__ == "__main__":
    sys.exit(cli())
