"""Project-wide configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(os.environ.get("PHOTO_HARVEST_PROJECT_ROOT", Path.cwd()))

load_dotenv(PROJECT_ROOT / ".env")

DB_PATH = Path(os.environ.get("PHOTO_HARVEST_DB", PROJECT_ROOT / "photo_harvest.duckdb"))

# Source credentials. A missing key turns that source into a no-op.
PIXABAY_API_KEY = os.environ.get("PIXABAY_API_KEY", "")
PIXABAY_API_BASE = "https://pixabay.com/api/"
PEXELS_API_KEY = os.environ.get("PEXELS_API_KEY", "")
PEXELS_API_BASE = "https://api.pexels.com/v1/search"
UNSPLASH_ACCESS_KEY = os.environ.get("UNSPLASH_ACCESS_KEY", "")
UNSPLASH_API_BASE = "https://api.unsplash.com/search/photos"
WIKIMEDIA_BASE = "https://commons.wikimedia.org"

USER_AGENT = "Mozilla/5.0 (compatible; photo-harvest/0.1; +https://github.com/photo-harvest)"

# Collection run
COLLECTION_TARGET = int(os.environ.get("PHOTO_HARVEST_TARGET", "150000"))
ATTEMPT_DELAY_SECONDS = float(os.environ.get("PHOTO_HARVEST_DELAY", "1.0"))
PAGE_SIZE = 80

# Per-call timeouts (seconds)
SOURCE_TIMEOUTS: dict[str, float] = {
    "pixabay": 15.0,
    "pexels": 15.0,
    "unsplash": 15.0,
    "wikimedia": 30.0,
    "freepik": 20.0,
    "web": 20.0,
}

# Whole-site crawl
CRAWL_MAX_PAGES = int(os.environ.get("PHOTO_HARVEST_CRAWL_MAX_PAGES", "200"))

# URL migration
MIGRATION_BATCH_SIZE = 100
