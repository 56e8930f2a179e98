class EventType:
    """Event names published by the loot service."""

    # One per generated item, in drop order
    LOOT_GENERATED = "loot.generated"

    # Slot-pinned armor built for tooling
    LOOT_ARMOR_GENERATED = "loot.armor_generated"

    # Emitted after a drop has been handed to the inventory
    LOOT_AWARDED = "loot.awarded"
