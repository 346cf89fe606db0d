import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
CHAT_MODEL = os.getenv("CHAT_MODEL", "gemini-2.5-flash-lite")
CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0.7"))

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Daily chat quota per client IP
RATE_LIMIT = int(os.getenv("RATE_LIMIT", "5"))
RATE_LIMIT_NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "diet-chat")

MESSAGE_TTL_SECONDS = int(os.getenv("MESSAGE_TTL_SECONDS", str(365 * 24 * 60 * 60)))

MICRONUTRIENTS_PATH = Path(
    os.getenv(
        "MICRONUTRIENTS_PATH",
        Path(__file__).resolve().parent / "data" / "micronutrients.json",
    )
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
