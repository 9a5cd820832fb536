from capwatchbot.config import TOKEN
from capwatchbot.logging_setup import setup_logging, log
from capwatchbot.bot import Bot

if __name__ == "__main__":
    setup_logging()
    if not TOKEN:
        log.error("CAPWATCH_TOKEN is not set")
        raise SystemExit(1)
    bot = Bot()
    bot.run(TOKEN, log_handler=None)
