from .loot_service import InventorySink, LootService

__all__ = ["InventorySink", "LootService"]
