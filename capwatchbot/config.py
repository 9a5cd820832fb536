import os
from dotenv import load_dotenv

load_dotenv()

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off", "")

# ---- Config / Env ----
TOKEN             = os.getenv("CAPWATCH_TOKEN")
SOLANA_RPC        = os.getenv("SOLANA_RPC", "https://api.mainnet-beta.solana.com")
HELP_URL          = os.getenv("HELP_URL", "").strip()

LOG_LEVEL         = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE          = os.getenv("LOG_FILE", "").strip()

# ---- Polling ----
POLL_SECONDS          = float(os.getenv("POLL_SECONDS", "5"))
WATCH_DELAY_SECONDS   = float(os.getenv("WATCH_DELAY_SECONDS", "0.5"))
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))
# price and supply each try two sources inside one fetch budget
SOURCE_TIMEOUT_SECONDS = float(os.getenv("SOURCE_TIMEOUT_SECONDS", str(FETCH_TIMEOUT_SECONDS / 2)))
HTTP_TIMEOUT_SECONDS  = min(float(os.getenv("HTTP_TIMEOUT_SECONDS", "12")), SOURCE_TIMEOUT_SECONDS)

# first evaluation of a change watch compares against 0
CHANGE_NOTIFY_ON_FIRST = _flag("CHANGE_NOTIFY_ON_FIRST", "true")

# ---- Conversations ----
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "600"))

# ---- Market data ----
DEX_TOKEN_URL      = "https://api.dexscreener.com/latest/dex/tokens/{address}"
JUP_PRICE_URL      = "https://api.jup.ag/price/v2?ids={address}&onlyDirectRoutes=true"
SUPPLY_URL         = "https://api.solana.fm/v1/tokens/{address}/supply"
DEX_BLACKLIST      = {"heaven"}
SUPPLY_TTL_SECONDS = int(os.getenv("SUPPLY_TTL_SECONDS", "3600"))
DEFAULT_SUPPLY     = float(os.getenv("DEFAULT_SUPPLY", "1000000000"))

# ---- Display helpers ----
MAX_ROWS_LIST = 25
