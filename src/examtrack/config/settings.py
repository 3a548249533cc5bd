from dataclasses import dataclass
import os
from dotenv import load_dotenv

from examtrack.core.buckets import Granularity, parse_granularity


load_dotenv()


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    # Question-count goals shown on the practice dashboard.
    daily_target: int = int(os.getenv("EXAMTRACK_DAILY_TARGET", "80"))
    weekly_target: int = int(os.getenv("EXAMTRACK_WEEKLY_TARGET", "560"))
    monthly_target: int = int(os.getenv("EXAMTRACK_MONTHLY_TARGET", "2400"))

    log_level: str = os.getenv("EXAMTRACK_LOG_LEVEL", "INFO").upper()

    cors_allowed_origins: tuple[str, ...] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )

    def default_target(self, granularity) -> int:
        granularity = parse_granularity(granularity)
        if granularity is Granularity.DAILY:
            return self.daily_target
        if granularity is Granularity.WEEKLY:
            return self.weekly_target
        return self.monthly_target


settings = Settings()
