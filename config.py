"""Configuration module for the book metadata pipeline."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Configuration
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-opus-4-5-20251101")
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1500"))

# Chunking Configuration
MAX_TOKENS_PER_CHUNK = int(os.getenv("MAX_TOKENS_PER_CHUNK", "6000"))
MIN_TOKENS_PER_CHUNK = int(os.getenv("MIN_TOKENS_PER_CHUNK", "1000"))  # advisory only
OVERLAP_TOKENS = int(os.getenv("OVERLAP_TOKENS", "500"))
CHARS_PER_TOKEN_FALLBACK = int(os.getenv("CHARS_PER_TOKEN_FALLBACK", "4"))
TOKENIZER_ENCODING = os.getenv("TOKENIZER_ENCODING", "cl100k_base")

# Rolling summary / prompt budgets
SUMMARY_MAX_LENGTH = int(os.getenv("SUMMARY_MAX_LENGTH", "6000"))  # characters
PROMPT_TOKEN_LIMIT = int(os.getenv("PROMPT_TOKEN_LIMIT", "8000"))
MAX_TOKENS_FOR_REQUEST = int(os.getenv("MAX_TOKENS_FOR_REQUEST", "120000"))
TRUNCATION_CACHE_SIZE = int(os.getenv("TRUNCATION_CACHE_SIZE", "100"))

# Retry / concurrency
MAX_RETRY_ATTEMPTS = int(os.getenv("MAX_RETRY_ATTEMPTS", "3"))
INITIAL_RETRY_DELAY_MS = int(os.getenv("INITIAL_RETRY_DELAY_MS", "1000"))
MAX_CONCURRENT_CHUNK_CALLS = int(os.getenv("MAX_CONCURRENT_CHUNK_CALLS", "4"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
