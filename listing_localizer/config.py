"""Configuration management."""
import os


class Config:
    def __init__(self):
        self.OPENAI_KEY: str = os.environ.get("OPENAI_API_KEY", "")
        self.OPENAI_BASE: str = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.OPENAI_MODEL: str = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
        self.AI_TEMPERATURE: float = float(os.environ.get("AI_TEMPERATURE", "0.7"))
        self.AI_MAX_TOKENS: int = int(os.environ.get("AI_MAX_TOKENS", "4000"))
        self.AI_TIMEOUT: int = int(os.environ.get("AI_TIMEOUT", "90"))
        self.REDIS_URL: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
        self.BATCH_SIZE: int = int(os.environ.get("BATCH_SIZE", "5"))
        self.MAX_FILE_BYTES: int = int(os.environ.get("MAX_FILE_BYTES", str(10 * 1024 * 1024)))
        self.MAX_LISTINGS: int = int(os.environ.get("MAX_LISTINGS", "100"))
        self.LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def validate(self):
        if not self.OPENAI_KEY:
            raise ValueError("OPENAI_API_KEY is not set")
        if self.BATCH_SIZE < 1:
            raise ValueError("BATCH_SIZE must be at least 1")
        if self.MAX_FILE_BYTES < 1:
            raise ValueError("MAX_FILE_BYTES must be positive")
        if self.MAX_LISTINGS < 1:
            raise ValueError("MAX_LISTINGS must be at least 1")


config = Config()
