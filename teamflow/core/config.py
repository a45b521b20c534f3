from os import getenv

class Settings:
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "15"))  # access token: 15 minutes
    JWT_REFRESH_EXPIRE_MIN = int(getenv("JWT_REFRESH_EXPIRE_MIN", "43200"))  # refresh token: 30 days

    # AI providers (Gemini first, Groq as fallback)
    GEMINI_API_KEY = getenv("GEMINI_API_KEY")
    GEMINI_MODEL = getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GROQ_API_KEY = getenv("GROQ_API_KEY")
    GROQ_MODEL = getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    AI_REQUEST_TIMEOUT = int(getenv("AI_REQUEST_TIMEOUT", "60"))

    # File storage (Cloudinary)
    CLOUDINARY_CLOUD_NAME = getenv("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY = getenv("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET = getenv("CLOUDINARY_API_SECRET")
    CLOUDINARY_FOLDER = getenv("CLOUDINARY_FOLDER", "uploads")
    STORAGE_TIMEOUT = int(getenv("STORAGE_TIMEOUT", "60"))

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

settings = Settings()
