"""
Configuration settings for whirlpool_core

환경 변수(.env)에서 설정을 읽고, 필요하면 YAML 파일로 덮어쓴다.
"""
import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _optional_int_env(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Settings:
    """Library settings"""

    def __init__(self):
        # Quote defaults
        self.DEFAULT_SLIPPAGE_TOLERANCE_BPS: int = int(
            os.getenv("WHIRLPOOL_DEFAULT_SLIPPAGE_TOLERANCE_BPS", 100)
        )
        # None 이면 (초기화된 틱 수 + 틱 배열 수 + 2)
        self.SWAP_MAX_ITERATIONS: Optional[int] = _optional_int_env("WHIRLPOOL_SWAP_MAX_ITERATIONS")

        # Snapshot API
        self.SNAPSHOT_API_URL: str = os.getenv("WHIRLPOOL_SNAPSHOT_API_URL", "")
        self.SNAPSHOT_API_KEY: str = os.getenv("WHIRLPOOL_SNAPSHOT_API_KEY", "")
        self.REQUEST_TIMEOUT: int = int(os.getenv("WHIRLPOOL_REQUEST_TIMEOUT", 30))
        self.MAX_RETRIES: int = int(os.getenv("WHIRLPOOL_MAX_RETRIES", 3))
        self.RETRY_DELAY: float = float(os.getenv("WHIRLPOOL_RETRY_DELAY", 1.0))

        # Logging
        self.LOG_LEVEL: str = os.getenv("WHIRLPOOL_LOG_LEVEL", "WARNING")

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Settings":
        """YAML 파일의 값으로 덮어쓴 설정

        키는 속성 이름과 같다 (대소문자 무시). 알 수 없는 키는 KeyError.

        Example:
            # whirlpool.yaml
            default_slippage_tolerance_bps: 50
            swap_max_iterations: 64
        """
        settings = cls()
        with open(path, 'r') as f:
            overrides = yaml.safe_load(f) or {}

        for key, value in overrides.items():
            name = key.upper()
            if not hasattr(settings, name):
                raise KeyError(f"알 수 없는 설정 키: {key}")
            setattr(settings, name, value)
        return settings


def configure_logging(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """패키지 로거에 콘솔 핸들러 설치

    여러 번 호출해도 핸들러는 하나만 붙는다.
    """
    logger = logging.getLogger("whirlpool_core")
    logger.setLevel(level if level is not None else settings.LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger


# Create global settings instance
settings = Settings()
