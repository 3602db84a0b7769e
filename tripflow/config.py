import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    amadeus_client_id: Optional[str] = None
    amadeus_client_secret: Optional[str] = None
    amadeus_hostname: str = "test"
    booking_api_url: Optional[str] = None
    booking_timeout: int = 15

    @property
    def amadeus_enabled(self) -> bool:
        return bool(self.amadeus_client_id and self.amadeus_client_secret)

    @property
    def llm_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            amadeus_client_id=os.getenv("AMADEUS_CLIENT_ID") or None,
            amadeus_client_secret=os.getenv("AMADEUS_CLIENT_SECRET") or None,
            amadeus_hostname=os.getenv("AMADEUS_HOSTNAME", "test"),
            booking_api_url=os.getenv("BOOKING_API_URL") or None,
            booking_timeout=int(os.getenv("BOOKING_TIMEOUT", "15")),
        )
