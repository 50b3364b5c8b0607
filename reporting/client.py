"""Bulk transport clients"""
import abc
from typing import Dict, Optional, Sequence
import httpx
from config import Config
from logging_config import get_logger
from .payload import Record, encode_bulk


logger = get_logger(__name__)


class BulkClient(abc.ABC):
    """Writes a run's records to the metrics store"""

    @abc.abstractmethod
    async def write(self, payload: Sequence[Record]) -> bool:
        """Write all records; return True only if every record was accepted"""
        pass

    async def close(self) -> None:
        pass


class ElasticSearchBulkClient(BulkClient):
    """Elasticsearch ``_bulk`` client over httpx"""

    def __init__(self,
                 base_url: str,
                 index: str,
                 username: str = "",
                 password: str = "",
                 api_key: str = "",
                 timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.index = index

        headers: Dict[str, str] = {"Content-Type": "application/x-ndjson"}
        if api_key:
            headers["Authorization"] = f"ApiKey {api_key}"

        auth = httpx.BasicAuth(username, password) if username and password else None

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ElasticSearchBulkClient":
        return cls(
            base_url=config.elasticsearch_url,
            index=config.elasticsearch_index,
            username=config.elasticsearch_username,
            password=config.elasticsearch_password,
            api_key=config.elasticsearch_api_key,
            timeout=config.request_timeout,
            transport=transport,
        )

    async def write(self, payload: Sequence[Record]) -> bool:
        if not payload:
            logger.debug("Empty payload, nothing to write", index=self.index)
            return True

        body = encode_bulk(payload, self.index)

        try:
            response = await self._client.post("/_bulk", content=body)
        except httpx.HTTPError as e:
            logger.error(
                "Bulk write failed",
                error=str(e),
                error_type=type(e).__name__,
                endpoint=self.base_url,
                event_type="bulk_write_error"
            )
            return False

        if response.is_error:
            logger.error(
                "Bulk write rejected",
                status_code=response.status_code,
                response=response.text[:500],
                endpoint=self.base_url,
                event_type="bulk_write_error"
            )
            return False

        try:
            result = response.json()
        except ValueError:
            result = {}

        if result.get("errors"):
            failed = [item for item in result.get("items", [])
                      if item.get("index", {}).get("error")]
            logger.error(
                "Bulk write partially failed",
                record_count=len(payload),
                failed_count=len(failed),
                first_error=failed[0]["index"]["error"] if failed else None,
                event_type="bulk_write_partial_failure"
            )
            return False

        logger.debug(
            "Bulk write succeeded",
            record_count=len(payload),
            index=self.index,
            event_type="bulk_write"
        )
        return True

    async def close(self) -> None:
        await self._client.aclose()
