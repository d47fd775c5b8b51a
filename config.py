import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    DATABASE_URL = os.getenv("DATABASE_URL")
    DATABASE_NAME = os.getenv("DATABASE_NAME")
    PORT = int(os.getenv("PORT", 8000))

    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    CHECKOUT_CURRENCY = os.getenv("CHECKOUT_CURRENCY", "usd")
    CHECKOUT_SUCCESS_URL = os.getenv(
        "CHECKOUT_SUCCESS_URL",
        "http://localhost:5173/orders?status=success&session_id={CHECKOUT_SESSION_ID}",
    )
    CHECKOUT_CANCEL_URL = os.getenv("CHECKOUT_CANCEL_URL", "http://localhost:5173/checkout?status=cancel")

    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")


config = Config()
