"""Configuration management - loads environment variables."""

import os
from dotenv import load_dotenv

load_dotenv()

# Discord Bot Configuration
BOT_TOKEN = os.getenv("BOT_TOKEN")
CHANNEL_ID = os.getenv("CHANNEL_ID")

# Canvas API Configuration
CANVAS_TOKEN = os.getenv("CANVAS_TOKEN")
CANVAS_BASE_URL = os.getenv("CANVAS_BASE_URL", "https://canvas.instructure.com/api/v1/")

# Supabase Configuration (job tracking and edge functions)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")

# Database Configuration (optional, has default in db_manager.py)
DB_PATH = os.getenv("DB_PATH")

# Cache Configuration (seconds)
COURSE_CACHE_TTL = float(os.getenv("COURSE_CACHE_TTL", "300"))
ASSIGNMENT_CACHE_TTL = float(os.getenv("ASSIGNMENT_CACHE_TTL", "300"))
PERSISTED_CACHE_TTL = float(os.getenv("PERSISTED_CACHE_TTL", "1800"))
BACKGROUND_REFRESH_INTERVAL = float(os.getenv("BACKGROUND_REFRESH_INTERVAL", "180"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
