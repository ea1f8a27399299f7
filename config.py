import os
from dotenv import load_dotenv

load_dotenv()  # Load from .env file

# MongoDB
DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017/")
DATABASE_NAME = os.getenv("DATABASE_NAME", "appdb")

# Server
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Chat service (Hugging Face inference API)
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")
CHAT_API_URL = os.getenv(
    "CHAT_API_URL",
    "https://api-inference.huggingface.co/models/microsoft/DialoGPT-medium",
)
CHAT_TIMEOUT_SECONDS = float(os.getenv("CHAT_TIMEOUT_SECONDS", "10"))
