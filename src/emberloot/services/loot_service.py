from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..events import EventBus, EventType, get_event_bus
from ..items.models import Armor, Item
from ..loot.drops import ArmorSlotRequest, LootDropRequest, LootGenerator
from ..loot.power import get_item_power_score, get_sell_value
from ..loot.rarity import format_rarity_label

logger = logging.getLogger(__name__)


@runtime_checkable
class InventorySink(Protocol):
    """Receives finished items. The service keeps no reference after handoff."""

    def add_item(self, item: Item) -> None: ...


class LootService:
    """Engine-facing loot entry point.

    Runs the generator, announces each item on the event bus so quest and UI
    observers can react, and optionally hands drops to the inventory.
    """

    def __init__(
        self,
        generator: LootGenerator,
        event_bus: Optional[EventBus] = None,
        inventory: Optional[InventorySink] = None,
    ) -> None:
        self.generator = generator
        self.event_bus = event_bus or get_event_bus()
        self.inventory = inventory

    def _item_payload(self, item: Item, request: LootDropRequest) -> Dict[str, Any]:
        enemy = request.enemy
        return {
            "item": item,
            "area": request.area,
            "player_level": request.player_level,
            "enemy_tier": enemy.rarity_tier,
            "is_boss": enemy.is_boss,
            "is_elite": enemy.is_elite,
            "rarity": item.rarity.value,
            "type": item.type.value,
            "item_level": item.item_level,
        }

    def generate_loot(self, request: Any = None, **kwargs: Any) -> List[Item]:
        req = LootDropRequest.coerce(request, **kwargs)
        items = self.generator.generate_loot_drop(req)
        for item in items:
            self.event_bus.publish(EventType.LOOT_GENERATED, self._item_payload(item, req))
        logger.info(
            "Loot drop in %s (player level %d, tier %d): %s",
            req.area,
            req.player_level,
            req.enemy.rarity_tier,
            ", ".join(f"{i.name} [{i.rarity.value}]" for i in items) or "nothing",
        )
        return items

    def generate_armor(self, request: Any = None, **kwargs: Any) -> Armor:
        req = ArmorSlotRequest.coerce(request, **kwargs)
        armor = self.generator.generate_armor_for_slot(req)
        self.event_bus.publish(
            EventType.LOOT_ARMOR_GENERATED,
            {
                "item": armor,
                "area": req.area,
                "slot": armor.slot.value,
                "rarity": armor.rarity.value,
                "item_level": armor.item_level,
            },
        )
        return armor

    def award_drop(self, request: Any = None, **kwargs: Any) -> List[Item]:
        """Generate a drop and give every item to the inventory collaborator."""
        items = self.generate_loot(request, **kwargs)
        if self.inventory is None:
            logger.warning("No inventory attached; %d item(s) were generated but not awarded", len(items))
            return items
        for item in items:
            self.inventory.add_item(item)
        self.event_bus.publish(EventType.LOOT_AWARDED, {"item_ids": [i.id for i in items], "count": len(items)})
        return items

    def get_sell_price(self, item: Any, context: str = "village") -> int:
        return get_sell_value(item, context)

    def get_rarity_label(self, rarity: Any) -> str:
        return format_rarity_label(rarity)

    def get_power_score(self, item: Any) -> float:
        return get_item_power_score(item)


__all__ = ["InventorySink", "LootService"]
