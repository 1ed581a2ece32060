"""CLI entry point for the MatchDesk agent.

A terminal chat for development: each question runs through the same agent
loop as the API and the answer is streamed to stdout as it is generated.
For production, use the FastAPI server (matchdesk/server.py).

Usage:
    uv run python -m matchdesk.main            # normal mode (quiet)
    uv run python -m matchdesk.main --debug    # debug mode (shows API calls)
"""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from matchdesk.agent import AgentResult, create_match_agent
from matchdesk.config import load_settings

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("matchdesk").setLevel(logging.DEBUG if debug else logging.INFO)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="MatchDesk agent CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  MatchDesk - CLI Chat")
    print("=" * 60)
    print("  Ask about matches, players or match events.")
    print("  Type 'quit' to exit.")
    print("=" * 60 + "\n")

    agent = create_match_agent(load_settings())

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            print("Please enter a message.\n")
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye!")
            break

        print("\nMatchDesk: ", end="", flush=True)
        try:
            for event in agent.stream(user_input):
                if isinstance(event, AgentResult):
                    logger.debug("Answered after %d tool round(s)", event.tool_rounds)
                    continue
                print(event, end="", flush=True)
            print("\n")

        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except Exception as e:
            logger.exception("Error processing message")
            print(f"\nSorry, something went wrong: {e}")
            print("     Please try again.\n")


if __name__ == "__main__":
    main()
