"""Command-line interface for the gacha progression engine."""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import (
    ENHANCEMENT_DESTRUCTION_RATES,
    ENHANCEMENT_SUCCESS_RATES,
    GACHA_COSTS,
    GACHA_RATES,
    MAX_ENHANCEMENT_LEVEL,
    MULTI_DRAW_COUNT,
    OFFLINE_CAP_SECONDS,
    STAT_FIELDS,
)
from .engines.enhancement import get_enhancement_cost, get_enhancement_info
from .errors import GachaForgeError
from .models import EQUIPMENT_SLOTS, GachaCategory, Grade
from .session import GameSession, SessionConfig
from .simulator import EnhancementSimulator
from .utils import STAT_LABELS, format_credits, format_stat, format_time, item_label, item_primary_value


def resolve_item_id(session: GameSession, prefix: str) -> str:
    """Full id of the single owned item whose id starts with `prefix`."""
    matches = [item.id for item in session.save_data.all_items() if item.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise GachaForgeError(f"No item matches '{prefix}'")
    raise GachaForgeError(f"'{prefix}' matches {len(matches)} items, use a longer prefix")


def print_save(session: GameSession) -> None:
    """Pretty print credits, stats, equipment and inventory."""
    save = session.save_data
    print("\n" + "=" * 60)
    print(f"  Credits: {format_credits(save.credits)} ({save.credits:,})")
    print(f"  Income:  {save.credit_per_second + save.player_stats.credit_per_second_bonus:g}/s")
    print(f"  Stage:   {save.current_stage}")
    print("=" * 60)

    print("\n" + "-" * 60)
    print("  STATS")
    print("-" * 60)
    for stat in STAT_FIELDS:
        print(f"  {STAT_LABELS[stat]:<14} {format_stat(stat, save.player_stats.get(stat))}")

    print("\n" + "-" * 60)
    print("  EQUIPPED")
    print("-" * 60)
    for slot in EQUIPMENT_SLOTS:
        item = save.equipped_items.get(slot)
        if item is None:
            print(f"  {slot:<14} -")
        else:
            print(f"  {slot:<14} {item.id[:8]}  {item_label(item):<24} {item_primary_value(item)}")

    print("\n" + "-" * 60)
    print(f"  INVENTORY ({len(save.inventory)})")
    print("-" * 60)
    for item in save.inventory:
        print(f"  {item.id[:8]}  {item_label(item):<24} {item_primary_value(item)}")
    print()


def print_rates() -> None:
    """Print the gacha rates and the enhancement table."""
    print("\n" + "=" * 60)
    print("  Gacha Rates")
    print("=" * 60)
    for grade, rate in GACHA_RATES.items():
        print(f"  {grade:<12} {rate * 100:>8.3f}%")
    print("-" * 60)
    for category, cost in GACHA_COSTS.items():
        print(f"  {category:<12} {cost:>8} credits")

    print("\n" + "=" * 60)
    print("  Enhancement Rates (common cost)")
    print("=" * 60)
    print(f"{'Level':<8} {'Success':<10} {'Destroy':<10} {'Cost':<10}")
    print("-" * 60)
    for level in range(1, MAX_ENHANCEMENT_LEVEL + 1):
        success = ENHANCEMENT_SUCCESS_RATES.get(level, 0) * 100
        destroy = ENHANCEMENT_DESTRUCTION_RATES.get(level, 0) * 100
        cost = format_credits(get_enhancement_cost(Grade.COMMON, level))
        print(f"+{level:<7} {success:>6.1f}%   {destroy:>6.1f}%   {cost:<10}")
    print("=" * 60)
    print()


def print_simulation(stats: dict) -> None:
    """Pretty print Monte Carlo results."""
    print("\n" + "=" * 60)
    print("  Enhancement Simulation Results")
    print("=" * 60)
    print(f"\nTarget: +{stats['start_level']} → +{stats['target_level']} ({stats['grade']})")
    print(f"Simulations: {stats['num_simulations']:,}")
    print(f"Destruction prevention: {'on' if stats['destruction_prevention'] else 'off'}")

    for key, title in (("attempts", "ATTEMPTS REQUIRED"), ("credits", "CREDITS SPENT")):
        print("\n" + "-" * 60)
        print(f"  {title}")
        print("-" * 60)
        fmt = format_credits if key == "credits" else (lambda v: f"{v:.1f}")
        print(f"  Average:    {fmt(stats[key]['average'])}")
        print(f"  Median:     {fmt(stats[key]['p50'])}")
        print(f"  P90:        {fmt(stats[key]['p90'])}")
        print(f"  P99:        {fmt(stats[key]['p99'])}")
        print(f"  Worst:      {fmt(stats[key]['worst'])}")

    print("\n" + "-" * 60)
    print("  SETBACKS")
    print("-" * 60)
    print(f"  Downgrades:   avg {stats['downgrades']['average']:.1f}, worst {stats['downgrades']['worst']}")
    print(f"  Destructions: avg {stats['destructions']['average']:.2f}, worst {stats['destructions']['worst']}")
    print("\n" + "=" * 60)


def _cmd_show(session: GameSession, args: argparse.Namespace) -> bool:
    print_save(session)
    return False


def _cmd_draw(session: GameSession, args: argparse.Namespace) -> bool:
    category = GachaCategory(args.category)
    if args.count == 1:
        result = session.draw(category)
        items = [result.item] if result.success else []
    else:
        result = session.multi_draw(category, args.count)
        items = result.items
    if not result.success:
        print(f"Draw failed: {result.error}", file=sys.stderr)
        return False
    for item in items:
        print(f"  {item.id[:8]}  {item_label(item):<24} {item_primary_value(item)}")
    print(f"Spent {format_credits(result.cost)}, {format_credits(session.credits)} left")
    return True


def _cmd_enhance(session: GameSession, args: argparse.Namespace) -> bool:
    item_id = resolve_item_id(session, args.item_id)
    item = session.get_item(item_id)
    info = get_enhancement_info(item)
    if info is not None:
        print(
            f"+{info.next_level}: {info.success_rate * 100:.0f}% success, "
            f"{info.destruction_rate * 100:.0f}% destruction, cost {format_credits(info.cost)}"
        )
    attempt = session.enhance(item_id, destruction_prevention=args.protect)
    print(
        f"{attempt.result.value.upper()}: +{attempt.level_before} → +{attempt.level_after} "
        f"(paid {format_credits(attempt.cost_paid)})"
    )
    return True


def _cmd_inherit(session: GameSession, args: argparse.Namespace) -> bool:
    source_id = resolve_item_id(session, args.source)
    target_id = resolve_item_id(session, args.target)
    result = session.inherit(source_id, target_id)
    if result.success:
        print(f"Inheritance succeeded: {item_label(result.result_item)}")
    else:
        print(f"Inheritance failed: {result.error}")
    if result.source_consumed:
        print("The source item was consumed")
    return result.source_consumed


def _cmd_synthesize(session: GameSession, args: argparse.Namespace) -> bool:
    result = session.synthesize(Grade(args.grade))
    if not result.success:
        print(f"Synthesis failed: {result.error}", file=sys.stderr)
        return False
    print(f"Created {item_label(result.new_item)} from {len(result.consumed_items)} items")
    return True


def _cmd_equip(session: GameSession, args: argparse.Namespace) -> bool:
    result = session.equip(resolve_item_id(session, args.item_id))
    if not result.success:
        print(f"Equip failed: {result.error}", file=sys.stderr)
        return False
    print(f"Equipped {item_label(result.item)}")
    return True


def _cmd_unequip(session: GameSession, args: argparse.Namespace) -> bool:
    result = session.unequip(args.slot)
    if not result.success:
        print(f"Unequip failed: {result.error}", file=sys.stderr)
        return False
    print(f"Unequipped {item_label(result.item)}")
    return True


def _cmd_sell(session: GameSession, args: argparse.Namespace) -> bool:
    result = session.sell(resolve_item_id(session, prefix) for prefix in args.item_ids)
    if not result.success:
        print(f"Sale failed: {result.error}", file=sys.stderr)
        return False
    print(f"Sold {len(result.sold_items)} items for {format_credits(result.credits_earned)}")
    return True


def collect_offline_credits(session: GameSession) -> int:
    """Credit the time away since the last save and report it."""
    last = session.save_data.last_save_time
    earned = session.apply_offline_progress()
    if earned:
        away = min((session.save_data.last_save_time - last) // 1000, OFFLINE_CAP_SECONDS)
        print(f"Collected {format_credits(earned)} credits for {format_time(away)} away")
    return earned


def _cmd_collect(session: GameSession, args: argparse.Namespace) -> bool:
    # offline credits were already collected on load
    print(f"Credits: {format_credits(session.credits)}")
    return True


COMMANDS = {
    "show": _cmd_show,
    "draw": _cmd_draw,
    "enhance": _cmd_enhance,
    "inherit": _cmd_inherit,
    "synthesize": _cmd_synthesize,
    "equip": _cmd_equip,
    "unequip": _cmd_unequip,
    "sell": _cmd_sell,
    "collect": _cmd_collect,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Idle gacha progression engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s show                          # Show the current save
  %(prog)s draw weapons --count 10       # Ten weapon draws
  %(prog)s enhance 3fa85f64 --protect    # Enhance with destruction prevention
  %(prog)s synthesize common             # Merge 10 common items
  %(prog)s simulate --target 20          # Monte Carlo cost to +20
        """,
    )
    parser.add_argument("--save-dir", type=Path, help="Directory holding the save files")
    parser.add_argument("--seed", type=int, help="Random seed for reproducibility")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show", help="Show credits, stats, equipment and inventory")
    sub.add_parser("rates", help="Show gacha and enhancement rate tables")
    sub.add_parser("collect", help="Collect credits earned since the last save")

    draw = sub.add_parser("draw", help="Draw from a gacha banner")
    draw.add_argument("category", choices=[c.value for c in GachaCategory])
    draw.add_argument("--count", "-n", type=int, default=1, choices=[1, MULTI_DRAW_COUNT])

    enhance = sub.add_parser("enhance", help="Enhance an item")
    enhance.add_argument("item_id", help="Item id or unique prefix")
    enhance.add_argument("--protect", action="store_true", help="Use destruction prevention (+20 and up)")

    inherit = sub.add_parser("inherit", help="Move enhancement onto a higher-grade item")
    inherit.add_argument("source")
    inherit.add_argument("target")

    synth = sub.add_parser("synthesize", help="Merge 10 items of a grade into the next grade")
    synth.add_argument("grade", choices=[g.value for g in Grade if g.next_grade is not None])

    equip = sub.add_parser("equip", help="Equip an inventory item")
    equip.add_argument("item_id")

    unequip = sub.add_parser("unequip", help="Move an equipped item to the inventory")
    unequip.add_argument("slot", choices=EQUIPMENT_SLOTS)

    sell = sub.add_parser("sell", help="Sell inventory items")
    sell.add_argument("item_ids", nargs="+")

    simulate = sub.add_parser("simulate", help="Monte Carlo enhancement cost")
    simulate.add_argument("--target", "-t", type=int, default=15,
                          help=f"Target level (1-{MAX_ENHANCEMENT_LEVEL}, default: 15)")
    simulate.add_argument("--start-level", type=int, default=0)
    simulate.add_argument("--grade", choices=[g.value for g in Grade if g is not Grade.DIVINE],
                          default="common")
    simulate.add_argument("--simulations", "-n", type=int, default=1_000)
    simulate.add_argument("--protect", action="store_true")
    simulate.add_argument("--json", action="store_true", help="Output results as JSON")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "rates":
        print_rates()
        return 0

    if args.command == "simulate":
        if not 0 <= args.start_level < args.target <= MAX_ENHANCEMENT_LEVEL:
            print(f"Error: need 0 <= start < target <= {MAX_ENHANCEMENT_LEVEL}", file=sys.stderr)
            return 1
        simulator = EnhancementSimulator(seed=args.seed)
        if not args.json:
            print(f"Running {args.simulations:,} simulations...")
        stats = simulator.run_monte_carlo(
            target_level=args.target,
            grade=Grade(args.grade),
            num_simulations=args.simulations,
            start_level=args.start_level,
            destruction_prevention=args.protect,
        )
        if args.json:
            print(json.dumps(stats, indent=2))
        else:
            print_simulation(stats)
        return 0

    session = GameSession.from_config(SessionConfig(save_dir=args.save_dir, seed=args.seed))
    for warning in session.load_warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    collected = collect_offline_credits(session)

    try:
        changed = COMMANDS[args.command](session, args) or collected > 0
    except GachaForgeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if changed:
        result = session.save()
        if not result.success:
            print(f"Error: save failed ({result.error})", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
