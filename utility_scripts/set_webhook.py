#!/usr/bin/env python3
"""
Telegram Webhook Registration

Points the bot at this deployment's webhook endpoint, passing
TELEGRAM_WEBHOOK_SECRET so Telegram signs every call.

Usage:
    python utility_scripts/set_webhook.py https://bot.example.com
"""

import asyncio
import sys
from pathlib import Path

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from app.config import settings
from app.core.exceptions import NotificationDeliveryError
from app.services.telegram_client import TelegramClient

WEBHOOK_PATH = "/api/v1/telegram/webhook"


async def main(base_url: str) -> int:
    client = TelegramClient()
    if not client.is_configured:
        print("❌ TELEGRAM_BOT_TOKEN is not set")
        return 1

    url = base_url.rstrip("/") + WEBHOOK_PATH
    try:
        await client.set_webhook(url, settings.TELEGRAM_WEBHOOK_SECRET)
    except NotificationDeliveryError as e:
        print(f"❌ setWebhook failed: {e.detail}")
        return 1

    print(f"✅ Webhook set to {url}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
