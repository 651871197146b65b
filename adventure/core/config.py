from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # OpenAI-compatible API configuration
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # Story models, selected per session as "fast" or "deep"
    STORY_MODEL_FAST: str = "gpt-4o-mini"
    STORY_MODEL_DEEP: str = "gpt-4o"
    STORY_TEMPERATURE: float = 0.9

    # Image models, selected per session as "quality" or "fast"
    IMAGE_MODEL_QUALITY: str = "gpt-image-1"
    IMAGE_MODEL_FAST: str = "google/gemini-2.5-flash-image"
    IMAGE_SIZE: str = "1536x1024"

    # Redis configuration for the turn event stream
    REDIS_URL: str = "redis://localhost:6379/0"
    EVENTS_ENABLED: bool = True

    # Idle session cleanup threshold (in hours)
    INACTIVE_SESSION_CLEANUP_HOURS: int = 6

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'

settings = Settings()
