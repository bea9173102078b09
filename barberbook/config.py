import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barberbook.db")

# Payments
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "BRL")
# Payment method used when a booking or subscription request does not name one
DEFAULT_PAYMENT_METHOD_ID = int(os.getenv("DEFAULT_PAYMENT_METHOD_ID", "1"))
# Days a non-trial subscriber has to pay the first charge
PAYMENT_DUE_DAYS = int(os.getenv("PAYMENT_DUE_DAYS", "7"))

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
).split(",")
