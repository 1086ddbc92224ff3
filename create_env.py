"""
Script that creates a .env template for the Library Bot.
"""

from pathlib import Path

ENV_TEMPLATE = """# Telegram bot token from @BotFather
BOT_TOKEN=your_bot_token_here
# Bot username without @ (optional, resolved automatically)
BOT_USERNAME=

# Admin Telegram user ids, comma separated
ADMIN_IDS=
# Chat that receives admin notifications
ADMIN_CHAT_ID=0

# Chat (channel/supergroup) whose messages are forwarded to users
SOURCE_CHAT_ID=0

# Link shortener: adrinolinks or mock
SHORTENER_PROVIDER=adrinolinks
SHORTENER_API_URL=https://adrinolinks.in/api
SHORTENER_API_KEY=your_api_key_here

# Storage
DATABASE_PATH=./data/library.db
CATALOG_PATH=data/catalog.json

# Access settings
ACCESS_DURATION_HOURS=24
ITEMS_PER_PAGE=5
"""


def create_env_file(env_path: Path = Path(".env")) -> bool:
    """Create .env unless it already exists."""
    if env_path.exists():
        print(".env already exists.")
        return False

    with open(env_path, 'w', encoding='utf-8') as f:
        f.write(ENV_TEMPLATE)

    print("[OK] .env created!")
    print("\nNext steps:")
    print("1. Put your bot token into BOT_TOKEN")
    print("2. Add your Telegram user id to ADMIN_IDS")
    print("3. Set SOURCE_CHAT_ID and ADMIN_CHAT_ID (the bot must be a member of both)")
    print("4. Set SHORTENER_API_KEY")
    return True


if __name__ == "__main__":
    create_env_file()
