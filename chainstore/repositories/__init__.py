"""
Read-side repositories built on RedisService.

- AddressRepository: which addresses are monitored per blockchain
- CoinRepository: coin configuration records written by the wallet service
"""

from .address import AddressRepository
from .coin import COINS_HASH, CoinRepository

__all__ = ["COINS_HASH", "AddressRepository", "CoinRepository"]
