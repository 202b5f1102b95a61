# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .policy_repository import PolicyRepository
from .wallet_repository import WalletRepository
from .point_item_repository import PointItemRepository
from .point_history_repository import PointHistoryRepository

__all__ = [
    "BaseRepository",
    "PolicyRepository",
    "WalletRepository",
    "PointItemRepository",
    "PointHistoryRepository",
]
