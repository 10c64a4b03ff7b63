"""
Coin configuration lookups.

Coin records are JSON objects stored as fields of the ``coins`` hash, keyed
by ``<BLOCKCHAIN>_<SYMBOL>`` (e.g. ``SOLANA_USDT``). This repository is
read-only; the wallet service owns writes.
"""

import json
from typing import Any

from chainstore.core.logger import get_logger
from chainstore.store.errors import SerializationError
from chainstore.store.service import RedisService

COINS_HASH = "coins"


class CoinRepository:
    def __init__(self, service: RedisService, logger: Any = None):
        self.service = service
        self._logger = logger or get_logger(__name__)

    async def find_by_key(self, coin_key: str) -> dict[str, Any] | None:
        """
        Fetch one coin record.

        Returns:
            The decoded record, or None if the coin is not configured

        Raises:
            SerializationError: The stored record is not a JSON object
        """
        try:
            raw = await self.service.hget(COINS_HASH, coin_key)
        except Exception as e:
            self._logger.error(
                f"Failed to load coin {coin_key}: {e}",
                extra={"operation": "hget", "key": f"{COINS_HASH}:{coin_key}"},
            )
            raise
        if not raw:
            return None
        try:
            record = json.loads(raw)
        except json.JSONDecodeError as e:
            msg = f"Coin record {coin_key} is not valid JSON: {e}"
            raise SerializationError(msg, operation="deserialize", data_type="coin") from e
        if not isinstance(record, dict):
            msg = f"Coin record {coin_key} is not a JSON object"
            raise SerializationError(msg, operation="deserialize", data_type="coin")
        return record

    async def find_all(self) -> list[dict[str, Any]]:
        """All decodable coin records; malformed entries are skipped."""
        try:
            entries = await self.service.hgetall(COINS_HASH)
        except Exception as e:
            self._logger.error(
                f"Failed to load coins: {e}", extra={"operation": "hgetall", "key": COINS_HASH}
            )
            raise

        coins = []
        for coin_key, raw in entries.items():
            try:
                record = json.loads(raw)
            except json.JSONDecodeError as e:
                self._logger.warning(f"Skipping unparseable coin record {coin_key}: {e}")
                continue
            if not isinstance(record, dict):
                self._logger.warning(f"Skipping coin record {coin_key}: not a JSON object")
                continue
            coins.append(record)
        return coins
