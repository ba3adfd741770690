"""
suggex.bot.__main__ — ``python -m suggex.bot``
==============================================

Start-up order: secrets from ``.env`` first (the token and DATABASE_URL),
then ``config.yaml`` (path overridable with ``SUGGEX_CONFIG``), then the
database engine with its tables, and finally the bot itself.  A missing
token stops the process before anything connects.
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from suggex.bot.core import SuggexBot
from suggex.config import load_config
from suggex.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("suggex")

PLACEHOLDER_TOKEN = "your-discord-bot-token-here"


def main() -> None:
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == PLACEHOLDER_TOKEN:
        logger.critical("DISCORD_TOKEN missing; set it in .env (see .env.example).")
        sys.exit(1)

    cfg = load_config(os.getenv("SUGGEX_CONFIG", "config.yaml"))
    logger.info(
        "Loaded config for %s; guild sync runs every %d min",
        cfg.bot_name, cfg.sync_interval_minutes,
    )

    engine = create_db_engine()
    init_db(engine)

    bot = SuggexBot(cfg=cfg, engine=engine)

    logger.info("Connecting to Discord as %s…", cfg.bot_name)
    try:
        # discord.py's own handler is disabled; the basicConfig above applies.
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Interrupted, bot stopped.")


if __name__ == "__main__":
    main()
