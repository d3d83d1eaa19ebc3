"""
Snapshot API 클라이언트

견적에 필요한 스냅샷(풀, 틱 배열, 포지션, mint)을 JSON HTTP API 에서 조회한다.
견적 엔진 자체는 I/O 를 하지 않으며, 이 클라이언트는 그 바깥의 fetcher 역할이다.

응답 형식: {"data": ...} (오류 시 {"errors": [{"message": ...}]})
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import requests

from ..config import settings
from ..errors import SnapshotClientError
from ..extensions import MintMeta
from .types import Position, TickArray, Whirlpool

logger = logging.getLogger(__name__)


@dataclass
class SnapshotClientConfig:
    """Snapshot API 클라이언트 설정"""
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: int = 30
    max_retries: int = 3
    retry_delay: float = 1.0

    @classmethod
    def from_settings(cls) -> "SnapshotClientConfig":
        return cls(
            base_url=settings.SNAPSHOT_API_URL or None,
            api_key=settings.SNAPSHOT_API_KEY or None,
            timeout=settings.REQUEST_TIMEOUT,
            max_retries=settings.MAX_RETRIES,
            retry_delay=settings.RETRY_DELAY,
        )


class SnapshotClient:
    """Snapshot API 클라이언트

    사용법:
        client = SnapshotClient(base_url="https://snapshots.example.com/v1")
        pool = client.get_pool("HJPjoWUrhoZzkNfRpHuieeFk9WcZWjwy6PBjZ81ngndJ")
        arrays = client.get_tick_arrays(pool.address, [0, -5632, -11264])
    """

    def __init__(self, config: Optional[SnapshotClientConfig] = None, **overrides):
        """
        Args:
            config: 클라이언트 설정. None이면 환경변수(Settings)에서 로드
            **overrides: 설정 필드 덮어쓰기 (base_url, api_key, timeout, ...)
        """
        self.config = config or SnapshotClientConfig.from_settings()
        for key, value in overrides.items():
            setattr(self.config, key, value)

        if not self.config.base_url:
            raise SnapshotClientError(
                "API URL이 필요합니다. WHIRLPOOL_SNAPSHOT_API_URL 환경변수를 설정하거나 "
                "base_url 파라미터로 전달하세요."
            )

        self._session = requests.Session()
        if self.config.api_key:
            self._session.headers.update({"x-api-key": self.config.api_key})

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """GET 요청 실행

        네트워크 오류와 5xx 응답은 선형 backoff 로 재시도한다.

        Returns:
            응답의 data 필드 (404 이면 None)

        Raises:
            SnapshotClientError: 재시도 후에도 실패하거나 응답이 잘못된 경우
        """
        url = self._url(path)
        last_error = None

        for attempt in range(self.config.max_retries):
            try:
                logger.info("GET %s params=%s", url, params)
                response = self._session.get(url, params=params, timeout=self.config.timeout)
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                payload = response.json()
            except requests.exceptions.Timeout:
                last_error = SnapshotClientError(f"요청 타임아웃 ({self.config.timeout}초): {url}")
            except requests.exceptions.HTTPError as e:
                if e.response is not None and e.response.status_code < 500:
                    raise SnapshotClientError(f"요청 오류: {e}") from e
                last_error = SnapshotClientError(f"서버 오류: {e}")
            except requests.exceptions.JSONDecodeError as e:
                # RequestException 의 하위 클래스이므로 먼저 잡는다
                raise SnapshotClientError(f"JSON 응답이 아닙니다: {url}") from e
            except requests.exceptions.RequestException as e:
                last_error = SnapshotClientError(f"네트워크 오류: {e}")
            else:
                if "errors" in payload:
                    messages = [err.get("message", str(err)) for err in payload["errors"]]
                    raise SnapshotClientError(f"API 오류: {'; '.join(messages)}")
                if "data" not in payload:
                    raise SnapshotClientError("응답에 'data' 필드가 없습니다")
                return payload["data"]

            if attempt < self.config.max_retries - 1:
                delay = self.config.retry_delay * (attempt + 1)
                logger.warning(
                    "%s (retry %d/%d in %.1fs)",
                    last_error, attempt + 1, self.config.max_retries - 1, delay,
                )
                time.sleep(delay)

        raise last_error

    def get_pool(self, address: str) -> Optional[Whirlpool]:
        """풀 스냅샷 조회

        Returns:
            Whirlpool 또는 None (존재하지 않는 경우)
        """
        data = self._get(f"pools/{address}")
        return Whirlpool.from_dict(data) if data else None

    def get_tick_arrays(self, pool_address: str, start_indexes: Iterable[int]) -> List[TickArray]:
        """틱 배열 조회

        초기화되지 않은 (존재하지 않는) 배열은 결과에서 빠진다.

        Args:
            pool_address: 풀 주소
            start_indexes: 조회할 틱 배열 시작 인덱스 목록

        Returns:
            TickArray 목록
        """
        start_indexes = list(start_indexes)
        if not start_indexes:
            return []
        data = self._get(
            f"pools/{pool_address}/tick-arrays",
            {"startIndexes": ",".join(str(i) for i in start_indexes)},
        )
        return [TickArray.from_dict(t) for t in data or []]

    def get_position(self, address: str) -> Optional[Position]:
        """포지션 스냅샷 조회"""
        data = self._get(f"positions/{address}")
        return Position.from_dict(data) if data else None

    def get_mint(self, address: str) -> Optional[MintMeta]:
        """mint 메타데이터 조회 (전송 수수료, scaled UI, non-transferable 등)"""
        data = self._get(f"mints/{address}")
        return MintMeta.from_dict(data) if data else None
