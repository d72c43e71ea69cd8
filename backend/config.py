"""Application configuration via environment variables."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

APP_NAME = "Yatra Seva Backend"
APP_VERSION = "1.0.0"

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{BASE_DIR / 'yatra.db'}")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Admin auth
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@yatra.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Yatra Admin")

# Cloudinary (ticket uploads)
CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME", "")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY", "")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET", "")
CLOUDINARY_UPLOAD_PRESET = os.getenv("CLOUDINARY_UPLOAD_PRESET", "unsigned")
CLOUDINARY_TICKET_FOLDER = os.getenv("CLOUDINARY_TICKET_FOLDER", "yatras/tickets")

# Indian states lookup
LOCATION_API_URL = os.getenv("LOCATION_API_URL", "https://www.india-location-hub.in/api/states")
LOCATION_CACHE_SECONDS = int(os.getenv("LOCATION_CACHE_SECONDS", "3600"))

# Outbound HTTP
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "15"))

# Pagination
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# CORS
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
