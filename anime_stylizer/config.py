import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class StylizerSettings:
    port: int
    default_intensity: float
    max_dimension: int
    workers: int
    parallel_min_pixels: int
    upscaler_url: str
    timeout: float
    retries: int
    cache_ttl: float
    cache_size: int
    log_level: str

    @classmethod
    def from_env(cls) -> "StylizerSettings":
        return cls(
            port=int(os.getenv("PORT", "5500")),
            default_intensity=float(os.getenv("DEFAULT_INTENSITY", "80")),
            max_dimension=int(os.getenv("MAX_DIMENSION", "2048")),
            workers=int(os.getenv("STYLIZE_WORKERS", "0")),
            parallel_min_pixels=int(os.getenv("PARALLEL_MIN_PIXELS", "65536")),
            upscaler_url=os.getenv("UPSCALER_URL", ""),
            timeout=float(os.getenv("UPSCALER_TIMEOUT", "30.0")),
            retries=int(os.getenv("UPSCALER_RETRIES", "1")),
            cache_ttl=float(os.getenv("CACHE_TTL", "60")),
            cache_size=int(os.getenv("CACHE_SIZE", "16")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def resolved_workers(self) -> int:
        if self.workers > 0:
            return self.workers
        return os.cpu_count() or 1


SETTINGS = StylizerSettings.from_env()


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("anime-stylizer")
