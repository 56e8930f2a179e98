from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .config import Settings
from .core.rng import RngContext
from .errors import ConfigError
from .events import EventBus
from .items.models import ArmorSlot, Rarity
from .logging_config import configure_logging, level_for_verbosity
from .loot.drops import LootGenerator
from .services.loot_service import LootService

logger = logging.getLogger(__name__)

RARITY_CHOICES = [r.value for r in Rarity]
SLOT_CHOICES = [s.value for s in ArmorSlot] + ["armor"]


def _build_service(args: argparse.Namespace) -> Optional[tuple]:
    try:
        settings = Settings.load(Path(args.config) if args.config else None)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return None
    # -v flags and EMBERLOOT_LOG_LEVEL still beat the configured level.
    configure_logging(level_for_verbosity(args.verbose), default=settings.logging.level)
    logger.debug("Effective settings: %s", settings.to_dict())
    if args.seed is not None:
        settings.rng.seed = args.seed
        settings.rng.deterministic = True
    if getattr(args, "log", False):
        settings.rng.capture_log = True
    rng = settings.build_rng()
    service = LootService(LootGenerator(rng, settings.loot), event_bus=EventBus())
    return rng, service


def _envelope(rng: RngContext) -> Dict[str, Any]:
    return {"seed": rng.seed, "deterministic": rng.deterministic}


def _emit(doc: Dict[str, Any]) -> None:
    print(json.dumps(doc, indent=2))


def cmd_drop(args: argparse.Namespace) -> int:
    built = _build_service(args)
    if built is None:
        return 1
    rng, service = built
    request = {
        "area": args.area,
        "player_level": args.level,
        "enemy": {"is_boss": args.boss, "is_elite": args.elite, "rarity_tier": args.tier},
        "player_resource_key": args.resource,
        "force_gear_min_rarity": args.min_rarity,
        "force_gear_rarity": args.rarity,
    }
    drops: List[List[Dict[str, Any]]] = []
    for _ in range(max(1, args.count)):
        drops.append([item.to_dict() for item in service.generate_loot(request)])
    doc = _envelope(rng)
    doc["drops"] = drops
    if args.log:
        doc["rngLog"] = [{"i": e.index, "tag": e.tag, "v": e.value} for e in rng.log]
    _emit(doc)
    return 0


def cmd_armor(args: argparse.Namespace) -> int:
    built = _build_service(args)
    if built is None:
        return 1
    rng, service = built
    armor = service.generate_armor(
        area=args.area, level=args.level, rarity=args.rarity, is_boss=args.boss, slot=args.slot
    )
    doc = _envelope(rng)
    doc["item"] = armor.to_dict()
    _emit(doc)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="emberloot",
        description="Roll procedural loot drops and print them as JSON",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")
    p.add_argument("-c", "--config", help="Path to a user settings YAML file")
    sub = p.add_subparsers(dest="cmd")

    drop = sub.add_parser("drop", help="Roll the loot dropped by one enemy kill")
    drop.add_argument("--area", default="forest", help="Area id, e.g. forest or frostpeak")
    drop.add_argument("--level", type=int, default=1, help="Player level")
    kind = drop.add_mutually_exclusive_group()
    kind.add_argument("--boss", action="store_true", help="Enemy is a boss")
    kind.add_argument("--elite", action="store_true", help="Enemy is an elite")
    drop.add_argument("--tier", type=int, default=1, help="Enemy rarity tier (1-6)")
    drop.add_argument("--resource", default=None, help="Player resource key for potions, e.g. mana or fury")
    force = drop.add_mutually_exclusive_group()
    force.add_argument("--min-rarity", choices=RARITY_CHOICES, default=None, help="Minimum rarity for gear")
    force.add_argument("--rarity", choices=RARITY_CHOICES, default=None, help="Exact rarity for gear")
    drop.add_argument("--seed", type=int, default=None, help="Seed; turns deterministic mode on")
    drop.add_argument("--count", type=int, default=1, help="Number of kills to roll")
    drop.add_argument("--log", action="store_true", help="Include the RNG draw log in the output")
    drop.set_defaults(func=cmd_drop)

    armor = sub.add_parser("armor", help="Build one armor piece for a fixed slot")
    armor.add_argument("--slot", choices=SLOT_CHOICES, default="body")
    armor.add_argument("--level", type=int, default=1, help="Item level")
    armor.add_argument("--rarity", choices=RARITY_CHOICES, default="common")
    armor.add_argument("--area", default="forest")
    armor.add_argument("--boss", action="store_true", help="Roll with the boss affix bonus")
    armor.add_argument("--seed", type=int, default=None, help="Seed; turns deterministic mode on")
    armor.set_defaults(func=cmd_armor)
    return p


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level_for_verbosity(args.verbose))
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
