"""
Hex Flower Engine - Main Entry Point

A procedural event generator with memory for tabletop play. A Hex Flower is
a small hexagonal map whose cells hold weather, terrain or story states; each
2d6 roll moves a cursor one step and the cell it lands on is the new state.

This module provides the command-line entry point and an interactive CLI on
top of the HexFlowerEngine.
"""

import argparse
import logging
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from hexflower.data_models import DiceRoller, InvalidParameterError
from hexflower.navigation import (
    BoundaryPolicy,
    EngineConfig,
    FlowerOptions,
    HexFlowerEngine,
    HexFlowerNotFoundError,
    SnapshotParseError,
)
from hexflower.observability import get_run_log
from hexflower.persistence import JsonFileFlowerStore


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class HexFlowerConfig:
    """Configuration for a CLI session."""

    data_dir: Path = field(default_factory=lambda: Path("data"))
    store_file: str = "hexflowers.json"

    # Engine settings
    default_radius: int = 2
    enable_edge_wrapping: bool = False
    show_navigation_roll: bool = True

    # Runtime options
    seed: Optional[int] = None
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_file

    def to_engine_config(self) -> EngineConfig:
        return EngineConfig(
            default_radius=self.default_radius,
            boundary_policy=(
                BoundaryPolicy.WRAPPING if self.enable_edge_wrapping else BoundaryPolicy.BOUNDED
            ),
            show_navigation_roll=self.show_navigation_roll,
        )


def create_engine(config: HexFlowerConfig) -> HexFlowerEngine:
    """Build an engine backed by the JSON file store and load saved flowers."""
    run_log = get_run_log()
    if config.seed is not None:
        run_log.set_seed(config.seed)

    engine = HexFlowerEngine(
        config=config.to_engine_config(),
        store=JsonFileFlowerStore(config.store_path),
        dice_roller=DiceRoller(seed=config.seed),
        run_log=run_log,
    )
    engine.load()
    logger.info(f"Using Hex Flower store {config.store_path}")
    return engine


# =============================================================================
# INTERACTIVE CLI
# =============================================================================

class HexFlowerCLI:
    """Interactive command-line interface for the engine."""

    def __init__(self, engine: HexFlowerEngine):
        self.engine = engine
        self.running = False
        self.selected_id: Optional[str] = None
        flowers = engine.list_flowers()
        if flowers:
            self.selected_id = flowers[0].id
        self.commands = {
            "help": self.cmd_help,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "create": self.cmd_create,
            "list": self.cmd_list,
            "select": self.cmd_select,
            "nav": self.cmd_nav,
            "show": self.cmd_show,
            "set": self.cmd_set,
            "reset": self.cmd_reset,
            "history": self.cmd_history,
            "odds": self.cmd_odds,
            "export": self.cmd_export,
            "import": self.cmd_import,
            "delete": self.cmd_delete,
        }

    def run(self) -> None:
        """Run the interactive CLI loop."""
        self.running = True
        print("\n" + "=" * 60)
        print("HEX FLOWER ENGINE - Interactive Mode")
        print("=" * 60)
        print("Type 'help' for available commands, 'quit' to exit.\n")

        while self.running:
            try:
                user_input = input(f"[{self._prompt()}]> ").strip()
                if not user_input:
                    continue

                self.process_command(user_input)

            except KeyboardInterrupt:
                print("\nInterrupted. Type 'quit' to exit.")
            except EOFError:
                self.running = False

        self.engine.shutdown()
        print("\nFarewell.")

    def _prompt(self) -> str:
        flower = self._selected()
        return flower.name if flower else "no flower"

    def _selected(self):
        if self.selected_id is None:
            return None
        return self.engine.get_flower(self.selected_id)

    def process_command(self, user_input: str) -> None:
        """Process a user command."""
        parts = user_input.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd in self.commands:
            self.commands[cmd](args)
        else:
            print(f"Unknown command: {cmd}. Type 'help' for available commands.")

    def cmd_help(self, args: str) -> None:
        """Show help information."""
        print("""
Available Commands:
  create [NAME] [RADIUS]  - Create a Hex Flower (e.g., 'create Weather 2')
  list                    - List Hex Flowers
  select ID               - Select a Hex Flower by id (prefix is enough)
  nav [TOTAL]             - Roll 2d6 and move, or move with a given total
  show                    - Show the current hex
  set Q R field=value ... - Edit a hex (fields: label, content, color)
  reset                   - Return to the centre and clear history
  history                 - Show movement history
  odds                    - Show navigation probabilities
  export PATH             - Export the selected flower to JSON
  import PATH             - Import a flower from JSON
  delete                  - Delete the selected flower
  help                    - Show this help
  quit/exit               - Exit
""")

    def cmd_quit(self, args: str) -> None:
        self.running = False

    def cmd_create(self, args: str) -> None:
        parts = shlex.split(args)
        name = parts[0] if parts else None
        radius = None
        if len(parts) > 1:
            try:
                radius = int(parts[1])
            except ValueError:
                print(f"Radius must be a number, got '{parts[1]}'")
                return
        try:
            flower = self.engine.create(FlowerOptions(name=name, radius=radius))
        except InvalidParameterError as e:
            print(f"Cannot create Hex Flower: {e}")
            return
        self.selected_id = flower.id
        print(f"Created '{flower.name}' ({flower.id[:8]}) with {flower.cell_count} hexes")

    def cmd_list(self, args: str) -> None:
        flowers = self.engine.list_flowers()
        if not flowers:
            print("No Hex Flowers yet. Use 'create'.")
            return
        for flower in flowers:
            marker = "*" if flower.id == self.selected_id else " "
            print(f" {marker} {flower.id[:8]}  {flower.name} (radius {flower.radius}) at {flower.current_position}")

    def cmd_select(self, args: str) -> None:
        prefix = args.strip()
        matches = [f for f in self.engine.list_flowers() if f.id.startswith(prefix)] if prefix else []
        if len(matches) != 1:
            print(f"No unique Hex Flower matches '{prefix}'")
            return
        self.selected_id = matches[0].id
        print(f"Selected '{matches[0].name}'")

    def cmd_nav(self, args: str) -> None:
        if self.selected_id is None:
            print("No Hex Flower selected.")
            return
        roll_total = None
        if args.strip():
            try:
                roll_total = int(args.strip())
            except ValueError:
                print(f"Roll total must be a number, got '{args.strip()}'")
                return
        try:
            result = self.engine.navigate(self.selected_id, roll_total)
        except (InvalidParameterError, HexFlowerNotFoundError) as e:
            print(f"Cannot navigate: {e}")
            return
        print(result)

    def cmd_show(self, args: str) -> None:
        flower = self._selected()
        if flower is None:
            print("No Hex Flower selected.")
            return
        cell = flower.current_cell
        print(f"{flower.name} at {flower.current_position}")
        if cell is not None:
            print(f"  label:   {cell.label or '-'}")
            print(f"  content: {cell.content or '-'}")
            print(f"  color:   {cell.color or '-'}")

    def cmd_set(self, args: str) -> None:
        if self.selected_id is None:
            print("No Hex Flower selected.")
            return
        parts = shlex.split(args)
        if len(parts) < 3:
            print("Usage: set Q R field=value ...")
            return
        try:
            q, r = int(parts[0]), int(parts[1])
        except ValueError:
            print("Q and R must be numbers")
            return
        payload = {}
        for item in parts[2:]:
            key, _, value = item.partition("=")
            if key not in ("label", "content", "color"):
                print(f"Unknown field '{key}'")
                return
            payload[key] = value
        cell = self.engine.set_cell_content(self.selected_id, q, r, payload)
        if cell is None:
            print(f"No hex at ({q}, {r})")
        else:
            print(f"Updated {cell}")

    def cmd_reset(self, args: str) -> None:
        if self.selected_id is None:
            print("No Hex Flower selected.")
            return
        self.engine.reset(self.selected_id)
        print("Returned to the centre.")

    def cmd_history(self, args: str) -> None:
        flower = self._selected()
        if flower is None:
            print("No Hex Flower selected.")
            return
        if not flower.history:
            print("No movement yet.")
            return
        for i, entry in enumerate(flower.history, 1):
            print(
                f" {i:3d}. {entry.from_position} -> {entry.to_position} "
                f"{entry.direction.value} ({entry.entry_type.value})"
            )

    def cmd_odds(self, args: str) -> None:
        for direction, odds in self.engine.navigation_probabilities().items():
            rolls = ", ".join(str(total) for total in odds.rolls)
            print(f"  {direction.value} ({direction.compass:>2}): {rolls:<7} {odds.percent:5.1f}%")

    def cmd_export(self, args: str) -> None:
        if self.selected_id is None or not args.strip():
            print("Usage: export PATH (with a Hex Flower selected)")
            return
        text = self.engine.export_to_json(self.selected_id)
        if text is None:
            print("Selected Hex Flower no longer exists.")
            return
        path = Path(args.strip())
        path.write_text(text, encoding="utf-8")
        print(f"Exported to {path}")

    def cmd_import(self, args: str) -> None:
        path = Path(args.strip())
        if not args.strip() or not path.exists():
            print(f"File not found: {args.strip()}")
            return
        try:
            flower = self.engine.import_snapshot(path.read_text(encoding="utf-8"))
        except SnapshotParseError as e:
            print(f"Import failed: {e}")
            return
        self.selected_id = flower.id
        print(f"Imported '{flower.name}' as {flower.id[:8]}")

    def cmd_delete(self, args: str) -> None:
        if self.selected_id is None:
            print("No Hex Flower selected.")
            return
        self.engine.delete(self.selected_id)
        self.selected_id = None
        print("Deleted.")


# =============================================================================
# DEMO
# =============================================================================

def run_demo(engine: HexFlowerEngine, steps: int) -> None:
    """Create a throwaway flower and walk it for a number of rolls."""
    flower = engine.create(FlowerOptions(name="Demo Weather", metadata={"demo": True}))
    print(f"Demo: '{flower.name}' radius {flower.radius}, {flower.cell_count} hexes")
    for _ in range(steps):
        print(f"  {engine.navigate(flower.id)}")
    print(get_run_log().get_summary())
    engine.delete(flower.id)


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Hex Flower Engine - procedural events with memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m hexflower.main                 # Run interactive mode
  python -m hexflower.main --wrap          # Wrap to the opposite edge
  python -m hexflower.main --demo 10       # Walk a demo flower 10 steps
  python -m hexflower.main --seed 42       # Reproducible rolls
        """
    )

    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help="Directory for Hex Flower storage (default: data)",
    )
    parser.add_argument(
        "--radius",
        type=int,
        default=2,
        help="Default radius for new Hex Flowers, 1-5 (default: 2)",
    )
    parser.add_argument(
        "--wrap",
        action="store_true",
        help="Wrap to the antipodal hex instead of stopping at the edge",
    )
    parser.add_argument(
        "--no-roll-display",
        action="store_true",
        help="Do not log each navigation roll",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the navigation dice",
    )
    parser.add_argument(
        "--demo",
        type=int,
        metavar="STEPS",
        help="Run a non-interactive demo walk and exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> HexFlowerConfig:
    """Create HexFlowerConfig from parsed arguments."""
    return HexFlowerConfig(
        data_dir=args.data_dir,
        default_radius=args.radius,
        enable_edge_wrapping=args.wrap,
        show_navigation_roll=not args.no_roll_display,
        seed=args.seed,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    config = create_config_from_args(args)
    try:
        engine = create_engine(config)
    except InvalidParameterError as e:
        print(f"hexflower: error: {e}", file=sys.stderr)
        raise SystemExit(2) from e

    if args.demo is not None:
        run_demo(engine, args.demo)
        engine.shutdown()
    else:
        HexFlowerCLI(engine).run()


if __name__ == "__main__":
    main()
