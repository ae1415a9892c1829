"""
Command-line interface for Voltaic batch operations.

Run sessions, validate them, and re-save them without the GUI.

Usage::

    python -m cli simulate session.json --ticks 20
    python -m cli simulate session.json --output report.json
    python -m cli validate session.json
    python -m cli export session.json --output ordered.json
    python -m cli types
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from controllers.circuit_controller import CircuitController
from controllers.file_controller import validate_session_data
from controllers.simulation_controller import SimulationController
from models.circuit import CircuitModel
from models.errors import CircuitError, SaveError
from models.registry import COMPONENT_CLASSES

logger = logging.getLogger(__name__)


def try_load_circuit(filepath: str) -> tuple[CircuitModel | None, str]:
    """Load and validate a session JSON file without exiting.

    Returns:
        (model, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"

    try:
        validate_session_data(data)
        return CircuitModel.from_dict(data), ""
    except SaveError as e:
        return None, f"invalid session file: {e}"


def load_circuit(filepath: str) -> CircuitModel:
    """Load and validate a session JSON file.

    Raises:
        SystemExit: On file read or validation errors.
    """
    model, error = try_load_circuit(filepath)
    if model is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return model


def build_report(model: CircuitModel, result) -> dict:
    """Snapshot of the session after a run."""
    top = model.top
    return {
        "success": result.success,
        "frame": result.frame,
        "ticks": result.ticks,
        "error": result.error,
        "blown": result.blow_messages,
        "circuit": {
            "resistance": top.get_resistance(),
            "voltage": top.get_voltage(),
            "current": top.get_current(),
            "broken": top.is_broken(),
        },
        "components": [
            {
                "id": c.component_id,
                "type": c.type_name,
                "scope": c.scope_id,
                "resistance": c.resistance,
                "voltage": c.voltage,
                "current": c.current,
                "power": c.power(),
                "blown": c.blown,
            }
            for c in model.components.values()
        ],
    }


def _write_or_print(text: str, output, label: str) -> None:
    if output:
        Path(output).write_text(text)
        print(f"{label} written to {output}", file=sys.stderr)
    else:
        print(text)


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run the session for a number of ticks and report every component."""
    model = load_circuit(args.circuit)
    controller = CircuitController(model)
    sim = SimulationController(model, controller)

    result = sim.run(args.ticks)
    # Currents are reported as of the last tick, so read them before stopping
    report = build_report(model, result)
    sim.stop()

    if not result.success:
        print(f"Simulation failed: {result.error}", file=sys.stderr)
    for message in result.blow_messages:
        print(f"Warning: {message}", file=sys.stderr)

    _write_or_print(json.dumps(report, indent=2), args.output, "Report")
    return 0 if result.success else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Check that a session loads and its head power source closes a loop."""
    model = load_circuit(args.circuit)

    head = model.head
    if head is None:
        print(f"Session has errors: {args.circuit}", file=sys.stderr)
        print("  - no power source", file=sys.stderr)
        return 1
    if head.trace(head, check_passable=False, directed=False) is None:
        print(f"Session has errors: {args.circuit}", file=sys.stderr)
        print(f"  - {head} is not part of a closed loop", file=sys.stderr)
        return 1

    print(f"Session is valid: {args.circuit}")
    print(f"  {len(model.components)} components, {len(model.wires)} wires, head {head}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Re-save a session in flow order."""
    model = load_circuit(args.circuit)
    try:
        text = json.dumps(model.to_dict(), indent=2)
    except CircuitError as e:
        print(f"Error exporting session: {e}", file=sys.stderr)
        return 1
    _write_or_print(text, args.output, "Session")
    return 0


def cmd_types(args: argparse.Namespace) -> int:
    """List the component catalogue."""
    for name, cls in COMPONENT_CLASSES.items():
        sample = cls()
        traits = [
            trait
            for trait, present in (
                ("power source", sample.is_power_source()),
                ("luminous", sample.is_luminous()),
                ("blowable", sample.is_blowable()),
                ("connector", sample.is_connector()),
            )
            if present
        ]
        print(f"{name:<20} R={sample.resistance:<10g} {', '.join(traits)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="voltaic",
        description="Voltaic batch operations: simulate, validate and export sessions from the command line.",
    )
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log more (-vv for debug output)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # simulate
    sim_parser = subparsers.add_parser("simulate", help="Run the session and report the result")
    sim_parser.add_argument("circuit", help="Path to session JSON file")
    sim_parser.add_argument("--ticks", "-t", type=int, default=1, help="Number of frames to run (default: 1)")
    sim_parser.add_argument("--output", "-o", help="Write the report to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check the session loads and forms a closed loop")
    val_parser.add_argument("circuit", help="Path to session JSON file")

    # export
    exp_parser = subparsers.add_parser("export", help="Re-save the session in flow order")
    exp_parser.add_argument("circuit", help="Path to session JSON file")
    exp_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # types
    subparsers.add_parser("types", help="List the component types")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    handlers = {
        "simulate": cmd_simulate,
        "validate": cmd_validate,
        "export": cmd_export,
        "types": cmd_types,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
