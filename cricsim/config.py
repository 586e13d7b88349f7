"""
Simulation configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Simulation settings from environment variables"""

    # Generative model
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    AI_MODEL: str = os.getenv("CRICSIM_AI_MODEL", "gpt-4o-mini")
    AI_TIMEOUT: float = float(os.getenv("CRICSIM_AI_TIMEOUT", "20"))  # seconds
    AI_COMPLEXITY_THRESHOLD: int = int(os.getenv("CRICSIM_AI_COMPLEXITY_THRESHOLD", "7"))
    AI_LOOKAHEAD: int = int(os.getenv("CRICSIM_AI_LOOKAHEAD", "1"))

    # Over cache
    CACHE_SIZE: int = int(os.getenv("CRICSIM_CACHE_SIZE", "100"))
    RRR_BUCKET: float = float(os.getenv("CRICSIM_RRR_BUCKET", "1.0"))  # runs per over

    LOG_LEVEL: str = os.getenv("CRICSIM_LOG_LEVEL", "WARNING")

    @property
    def ai_enabled(self) -> bool:
        return bool(self.OPENAI_API_KEY)


settings = Settings()
