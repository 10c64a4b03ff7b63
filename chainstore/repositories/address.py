"""Monitored-address lookups."""

from typing import Any

from chainstore.core.logger import get_logger
from chainstore.store.service import RedisService


class AddressRepository:
    """
    Checks address membership in the per-chain monitoring sets.

    Addresses live in ``addresses:<blockchain>`` sets (blockchain lowercased),
    under the service key prefix.
    """

    def __init__(self, service: RedisService, logger: Any = None):
        self.service = service
        self._logger = logger or get_logger(__name__)

    @staticmethod
    def set_key(blockchain: str) -> str:
        return f"addresses:{blockchain.lower()}"

    async def is_address_monitored(self, blockchain: str, address: str) -> bool:
        try:
            return await self.service.sismember(self.set_key(blockchain), address)
        except Exception as e:
            self._logger.error(
                f"Failed to check monitored address on {blockchain}: {e}",
                extra={"operation": "sismember", "key": self.set_key(blockchain)},
            )
            raise
