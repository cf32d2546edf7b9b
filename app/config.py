import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Chat questions longer than this are rejected at the API boundary
MAX_QUESTION_LENGTH = int(os.getenv("MAX_QUESTION_LENGTH", "2000"))

# Pin the summary confidence jitter (unset = unseeded)
_seed = os.getenv("SUMMARY_RANDOM_SEED", "")
SUMMARY_RANDOM_SEED = int(_seed) if _seed.strip() else None

ENGINE_VERSION = os.getenv("ENGINE_VERSION", "rules-v1")
