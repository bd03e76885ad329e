# =============================================================================
# main.py  —  Entry Point for the Trip Planner Agent
# =============================================================================
#
# HOW TO RUN:
#   python main.py            (or the `trip-planner` console script)
#
# WHAT HAPPENS:
#   1. Loads .env and builds Settings
#   2. Starts the two tool servers (POI search, itinerary builder)
#   3. Reads user messages in a loop; each message is one TURN:
#        model call → tool calls → model call → ... → final answer
#   4. Prints the answer, the itinerary (if one was built), sources and the
#      tools used, then keeps the history for the next turn
#   5. Shuts the tool servers down on exit
# =============================================================================

import asyncio
import logging

from dotenv import load_dotenv

# Must run before Settings/LiteLLM read the environment.
load_dotenv()

from agent.conversation import TripPlannerAgent, TurnResult
from agent.model import LiteLlmChatModel
from core.config import Settings
from core.errors import TripPlannerError
from core.knowledge import KnowledgeCache
from tools.orchestrator import ToolOrchestrator, init_tool_servers

logger = logging.getLogger("trip_planner")


def format_itinerary(itinerary: dict) -> str:
    lines = []
    for day in itinerary.get("days", []):
        lines.append(f"  Day {day['day']}")
        for stop in day.get("activities", []):
            line = f"    {stop['time']}  {stop['activity']} — {stop['location']}"
            if stop.get("notes"):
                line += f"  ({stop['notes']})"
            lines.append(line)
    return "\n".join(lines)


def print_turn(result: TurnResult) -> None:
    print("-" * 70)
    print(f"\n🤖 Planner:\n\n{result.text or '(no text)'}")
    if result.itinerary:
        print("\n🗺️  Itinerary:\n")
        print(format_itinerary(result.itinerary))
    if result.sources:
        print("\n📚 Sources:")
        for source in result.sources:
            title = f" — {source['title']}" if source.get("title") else ""
            print(f"  • {source['source']}{title}: {source['url']}")
    if result.tool_usage:
        print(f"\n🔧 Tools used: {', '.join(result.tool_usage)}")
    print("\n" + "=" * 70)


async def run_planner(settings: Settings) -> None:
    print("=" * 70)
    print("  TRIP PLANNER AGENT")
    print(f"  Model: {settings.llm_model}  |  Tool servers: {settings.tool_server_mode}")
    print("=" * 70)
    print("\n🔧 Starting tool servers...")

    async with ToolOrchestrator.from_settings(settings) as orchestrator:
        await init_tool_servers(orchestrator, settings)
        agent = TripPlannerAgent(
            model=LiteLlmChatModel.from_settings(settings),
            orchestrator=orchestrator,
            knowledge=KnowledgeCache.from_settings(settings),
            max_round_trips=settings.max_round_trips,
        )
        print("✅ Ready! Ask for a trip plan (type 'quit' to exit).\n")

        history: list[dict] = []
        while True:
            try:
                user_input = input("\n🧑 You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\n\n👋 Goodbye!")
                break

            if user_input.lower() in ("quit", "exit", "q"):
                print("\n👋 Goodbye!")
                break
            if not user_input:
                continue

            history.append({"role": "user", "content": user_input})
            print("\n🤖 Planning...\n")
            try:
                result = await agent.run_turn(history)
            except TripPlannerError as e:
                history.pop()
                logger.error("Turn failed: %s", e)
                print(f"\n⚠️  {e}")
                continue

            history.append({"role": "assistant", "content": result.text, "itinerary": result.itinerary})
            print_turn(result)


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    asyncio.run(run_planner(settings))


if __name__ == "__main__":
    main()
