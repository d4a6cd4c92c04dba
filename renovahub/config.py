import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./renovahub.db")

# Firebase Configuration (Auth + Cloud Messaging)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_CLIENT_EMAIL = os.getenv("FIREBASE_CLIENT_EMAIL")
# Private keys are usually stored with escaped newlines in .env files
FIREBASE_PRIVATE_KEY = (os.getenv("FIREBASE_PRIVATE_KEY") or "").replace("\\n", "\n") or None

# Frontend base URL (used in email links) and allowed CORS origins
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

# Resend Email Configuration (fallback when no email settings are stored)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "RenovaHub <noreply@renovahub.app>")

# Fernet key for stored SMTP passwords / Resend keys
# (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")
SECRET_ENCRYPTION_KEY = os.getenv("SECRET_ENCRYPTION_KEY")

# Trello integration credentials
TRELLO_API_KEY = os.getenv("TRELLO_API_KEY")
TRELLO_API_TOKEN = os.getenv("TRELLO_API_TOKEN")

# Google Sheets (service account shares the Firebase credentials)
GOOGLE_SHEETS_SCOPES = [
    scope.strip()
    for scope in os.getenv(
        "GOOGLE_SHEETS_SCOPES", "https://www.googleapis.com/auth/spreadsheets"
    ).split(",")
    if scope.strip()
]

# Renewal notifications
NOTIFICATION_HORIZON_DAYS = int(os.getenv("NOTIFICATION_HORIZON_DAYS", "30"))
SWEEP_MAX_LICENSES = int(os.getenv("SWEEP_MAX_LICENSES", "500"))
SWEEP_CRON_HOUR = int(os.getenv("SWEEP_CRON_HOUR", "8"))  # UTC

# Roles
DEFAULT_ROLE_ID = os.getenv("DEFAULT_ROLE_ID", "02")
ADMIN_ROLE_NAME = os.getenv("ADMIN_ROLE_NAME", "Administrator")
DEFAULT_ROLE_NAME = "User"
