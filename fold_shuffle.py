#!/usr/bin/env python3
"""Fold an example step circuit and verify the result.

Usage:
    python fold_shuffle.py [--cache-dir .cache] [--steps 5]
                           [--variant shuffle] [--secondary trivial] [--no-debug]

--variant and --secondary name entries of STEP_CIRCUIT_REGISTRY. The primary
side runs the variant over BN254, the secondary side runs the companion
circuit (trivial by default) over Grumpkin. Exits with status 1 and the
failing stage on any error.
"""

import argparse
import sys
from pathlib import Path

from circuits import STEP_CIRCUIT_REGISTRY, get_step_circuit_class
from primitives.errors import DriverError
from protocol.driver import FoldConfig, FoldDriver


def build_run(variant: str, cache_dir: Path, steps: int, debug_mode: bool, secondary: str = "trivial"):
    """Return (config, primary circuit, secondary circuit, step_update) for a run.

    Raises:
        KeyError: If a circuit name is not registered
        ValueError: If the configuration is invalid
    """
    primary_class = get_step_circuit_class(variant)
    secondary_class = get_step_circuit_class(secondary)
    config = FoldConfig(
        fold_step_count=steps,
        primary_z_0=tuple(primary_class.example_state()),
        secondary_z_0=tuple(secondary_class.example_state()),
        key_cache=cache_dir,
        debug_mode=debug_mode,
    )
    primary_circuit = primary_class.example()

    def step_update(step, z_primary):
        return primary_circuit.next_step(z_primary)

    return config, primary_circuit, secondary_class.example(), step_update


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Fold a step circuit over the BN254/Grumpkin cycle'
    )
    parser.add_argument(
        '--cache-dir',
        type=Path,
        default=Path('.cache'),
        help='Directory of cached commitment keys'
    )
    parser.add_argument(
        '--steps',
        type=int,
        default=5,
        help='Total number of steps, including the base step'
    )
    parser.add_argument(
        '--variant',
        choices=sorted(STEP_CIRCUIT_REGISTRY),
        default='shuffle',
        help='Primary step circuit'
    )
    parser.add_argument(
        '--secondary',
        choices=sorted(STEP_CIRCUIT_REGISTRY),
        default='trivial',
        help='Secondary (companion) step circuit'
    )
    parser.add_argument(
        '--no-debug',
        action='store_true',
        help='Skip the row-level constraint check before each step'
    )

    args = parser.parse_args(argv)

    try:
        config, primary, secondary, step_update = build_run(
            args.variant, args.cache_dir, args.steps, not args.no_debug, args.secondary
        )
    except (KeyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    driver = FoldDriver(config)
    try:
        driver.run(primary, secondary, step_update)
    except DriverError as e:
        print(f"Error in stage {e.stage}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
