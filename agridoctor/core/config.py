import os
from dotenv import load_dotenv

# Values come from the environment, a local .env file overrides nothing that is already set
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./agridoctor.db")

# JWT
SECRET_KEY = os.getenv("SECRET_KEY", "agridoctor-dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 5))
TOKEN_HEADER = "x-auth-token"

# Uploaded disease images
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
UPLOAD_URL_PREFIX = "/uploads"
MAX_IMAGES = int(os.getenv("MAX_IMAGES", 5))
ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif"}

# Visit statistics
ONLINE_WINDOW_SECONDS = int(os.getenv("ONLINE_WINDOW_SECONDS", 300))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]
