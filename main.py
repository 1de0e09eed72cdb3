"""
Intent Router CLI Interface

Interactive command line over the router:
- Routes each input with per-run session context
- Dispatches routed commands to demo capability handlers
- Shows cache and routing statistics
"""

import asyncio
import sys
import uuid

from app.config import (
    ENABLE_FILE_LOGGING,
    LOG_FILE_PATH,
    LOG_LEVEL,
    validate_config,
)
from app.runner import run_command
from core.router import IntelligentRouter, create_router
from infra.logger import logger_api, setup_logging
from infra.ui import format_cache_entries, format_decision, format_metrics, type_list, type_out
from tools.registry import CommandRegistry


# ═══════════════════════════════════════════════════════════════════════════════
# DEMO HANDLERS
# ═══════════════════════════════════════════════════════════════════════════════

def _planning_handler(payload: dict) -> str:
    return f"[planning] {payload['intent'].lower()} ← {payload.get('text', '')!r}"


def _music_handler(payload: dict) -> str:
    target = payload.get("song") or payload.get("artist") or payload.get("genre") or "something"
    return f"[music] {payload['intent'].lower()} → {target}"


def _pomodoro_handler(payload: dict) -> str:
    duration = payload.get("duration")
    unit = payload.get("unit", "minutes")
    suffix = f" ({duration} {unit})" if duration else ""
    return f"[pomodoro] {payload['intent'].lower()}{suffix}"


async def _chat_handler(payload: dict) -> str:
    return f"[chat] {payload.get('text', '')}"


def build_demo_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register("PlanningHandler", _planning_handler, "Tasks, reminders and goals")
    registry.register("MusicHandler", _music_handler, "Music playback and playlists")
    registry.register("PomodoroHandler", _pomodoro_handler, "Focus timers and breaks")
    registry.register("ChatHandler", _chat_handler, "General conversation")
    return registry


# ═══════════════════════════════════════════════════════════════════════════════
# CLI INTERFACE
# ═══════════════════════════════════════════════════════════════════════════════

class CLI:
    """
    Command-line interface for the intent router.

    Each run is one routing session, so follow-up commands ("pause it")
    are routed with the previous turns as context.
    """

    def __init__(self, router: IntelligentRouter, registry: CommandRegistry):
        self.router = router
        self.registry = registry
        self.session_id = str(uuid.uuid4())[:8]
        self.session_queries = 0


    async def run(self):
        """Start interactive CLI session"""
        self._print_welcome()

        async with self.router:
            while True:
                try:
                    query = await self._get_input()

                    if not query:
                        continue

                    command = query.lower()

                    if command in ('exit', 'quit', 'q'):
                        break

                    if command in ('help', 'h', '?'):
                        self._print_help()
                        continue

                    if command == "stats":
                        print()
                        print(format_metrics(self.router.get_performance_metrics()))
                        continue

                    if command == "cache":
                        print("\n🗂️  Cache entries (most used first):")
                        print(format_cache_entries(self.router.cache.debug_entries()))
                        continue

                    if command == "clear":
                        self.router.clear_cache()
                        print("\nCache cleared.")
                        continue

                    await self._handle_query(query)

                except KeyboardInterrupt:
                    print("\n")
                    break

                except Exception as e:
                    print(f"\n❌ Error: {str(e)}\n")
                    logger_api.error(f"CLI_ERROR | error={str(e)}")

        self._print_goodbye()


    async def _handle_query(self, query: str):
        self.session_queries += 1
        hits_before = self.router.get_cache_stats().hits

        decision = await self.router.route_with_session(query, self.session_id)
        cache_hit = self.router.get_cache_stats().hits > hits_before

        print("\nRoute:")
        print(format_decision(decision, cache_hit=cache_hit))

        result = await run_command(self.registry, decision, query)
        if result["success"]:
            type_out(f"\nHandler: {result['data']['value']}")
        else:
            type_out(f"\n❌ Handler failed: {result['error']}")


    async def _get_input(self) -> str:
        """Read a line without blocking the event loop"""
        try:
            line = await asyncio.to_thread(input, "\nYou: ")
        except EOFError:
            return "exit"
        return line.strip()


    def _print_welcome(self):
        print("=" * 60)
        print("  Intent Router")
        print("=" * 60)
        print()
        print("  Commands are routed to:")
        print()
        type_list([
            f"{name}: {self.registry.describe(name)['description']}"
            for name in self.registry.names()
        ])
        print()
        print("  Commands: help | stats | cache | clear | exit")
        print()


    def _print_help(self):
        print()
        print("Available commands:")
        print("  help, h, ?  - Show this help message")
        print("  stats       - Show routing statistics")
        print("  cache       - Show cached routing decisions")
        print("  clear       - Clear the routing cache")
        print("  exit, quit  - Exit the application")
        print()
        print("Examples:")
        print('  "Add buy milk to my todo list"')
        print('  "Play some jazz"')
        print('  "Start a 25 minute focus timer"')
        print('  "Pause it"')
        print()


    def _print_goodbye(self):
        print()
        print(format_metrics(self.router.get_performance_metrics()))
        print()
        print(f"Routed {self.session_queries} commands this session.")
        print("Goodbye! 👋")
        print()


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

def main():
    """
    Main entry point for the application.

    Sets up logging, validates configuration, and starts the CLI.
    """
    try:
        setup_logging(
            level=LOG_LEVEL,
            log_file=LOG_FILE_PATH if ENABLE_FILE_LOGGING else None
        )

        logger_api.info("=" * 60)
        logger_api.info("Intent Router Starting")
        logger_api.info("=" * 60)

        logger_api.info("Validating configuration...")
        validate_config()
        logger_api.info("Configuration valid [OK]")

        router = create_router()
        cli = CLI(router, build_demo_registry())
        asyncio.run(cli.run())

        logger_api.info("Intent Router Stopped")

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(0)

    except Exception as e:
        logger_api.error(f"STARTUP_ERROR | error={str(e)}")
        print(f"\n❌ Startup error: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
