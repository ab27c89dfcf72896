"""
Blackjack agents entry point.

This file handles startup concerns (arg-parsing, logging) and launches the appropriate interface
(HTTP API or terminal table).
"""

import argparse
import logging
import sys

from blackjack_agents.config import settings
from blackjack_agents.core.i18n import ThinkingLang

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # Keep per-request httpx logging out of the table output
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the blackjack agents.

    Sets up the command-line interface, initializes logging, and either serves the HTTP API or
    plays rounds at a terminal table.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="Run the blackjack agents")
    parser.add_argument(
        "--mode",
        choices=["api", "table"],
        type=str.lower,
        default="table",
        help="Serve the REST API or play at a terminal table (default: table)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    parser.add_argument(
        "--lang",
        choices=[lang.value for lang in ThinkingLang],
        type=str.lower,
        default=settings.THINKING_LANG,
        help="Language the agents think in (default from env: %(default)s)",
    )
    parser.add_argument(
        "--channel",
        choices=["gemini", "openai", "anthropic"],
        type=str.lower,
        default=settings.CHANNEL,
        help="Model channel (default from env: %(default)s)",
    )
    parser.add_argument("--rounds", type=int, default=1, help="Rounds to play in table mode")
    parser.add_argument("--seed", type=int, default=None, help="Shuffle seed for table mode")
    parser.add_argument(
        "--offline", action="store_true", help="Skip the model and use rule-based decisions"
    )
    args = parser.parse_args(argv)

    # Override settings with command-line arguments
    settings.LOG_LEVEL = args.log_level
    settings.CHANNEL = args.channel

    _init_logging(settings.LOG_LEVEL)

    logger.info("Starting blackjack agents [%s mode]", args.mode)
    secrets = {"GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"}
    logger.debug("Settings: %s", settings.model_dump(exclude=secrets))

    if args.mode == "api":
        # Lazy import to avoid web dependencies if not needed
        from blackjack_agents.api.app import (  # pylint: disable=import-outside-toplevel
            run_api,
        )

        run_api(host="0.0.0.0", port=settings.API_PORT, reload=settings.DEBUG)
    else:
        from blackjack_agents.client.cli import (  # pylint: disable=import-outside-toplevel
            run_table,
        )

        run_table(
            rounds=args.rounds,
            lang=ThinkingLang(args.lang),
            channel_name=args.channel,
            offline=args.offline,
            seed=args.seed,
        )


if __name__ == "__main__":
    main()
