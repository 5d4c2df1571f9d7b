# rosterbot/app.py
from __future__ import annotations

import sys
from pathlib import Path
import asyncio
import logging

# --------------------------------------------------------------------------------------
# Ensure project root is in sys.path so "import rosterbot.*" always works
# --------------------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rosterbot import config as cfg  # noqa: E402
from rosterbot.config import get_bot_token  # noqa: E402
from rosterbot.core.audit import AuditLog  # noqa: E402
from rosterbot.core.config_validation import validate_config  # noqa: E402
from rosterbot.core.engine import RosterEngine  # noqa: E402
from rosterbot.core.logging_utils import kv, setup_logging  # noqa: E402
from rosterbot.core.participants import ParticipantDirectory, load_participants  # noqa: E402
from rosterbot.adapters.telegram_adapter import TelegramAdapter  # noqa: E402
from rosterbot.integrations.gsheets import GoogleSheetsStore  # noqa: E402


def build_store() -> GoogleSheetsStore:
    return GoogleSheetsStore(
        spreadsheet_id=cfg.SPREADSHEET_ID,
        credentials_path=cfg.CREDENTIALS_PATH,
        sheet_name=cfg.SHEET_NAME,
        value_range=cfg.SHEET_RANGE,
        cache_ttl_s=cfg.SHEET_CACHE_TTL_S,
    )


async def main() -> None:
    setup_logging(cfg)
    log = logging.getLogger("rosterbot.app")

    validate_config(cfg)
    token = get_bot_token()

    directory = ParticipantDirectory(load_participants(cfg.PARTICIPANTS_FILE))
    audit = AuditLog(cfg.AUDIT_CSV_FILE, cfg.TZ)

    # Break constructor cycle: adapter needs engine, engine needs adapter
    engine = RosterEngine(
        config=cfg,
        store=build_store(),
        directory=directory,
        audit=audit,
    )
    adapter = TelegramAdapter(bot_token=token, engine=engine, commands=engine.router.commands)
    engine.attach_adapter(adapter)

    await engine.start()
    log.info(
        "startup.ready "
        + kv(participants=len(directory), tz=cfg.TIMEZONE, interval_s=cfg.CHECK_INTERVAL_S)
    )

    try:
        await adapter.run_polling()
    finally:
        await engine.stop()
        await adapter.bot.session.close()
        log.info("shutdown.done")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
