#!/usr/bin/env python3
"""Preview a short deterministic simulation run.

Runs the engine synchronously for a handful of ticks and prints one line
per sample.  Alerts raised along the way are printed as they fire.

Usage
-----
::

    python scripts/preview_sim.py --seed 42 --samples 15

Options::

    --seed N        Seed for the deterministic random source (default: 1)
    --samples N     Number of samples to print (default: 12)
    --every N       Only print every Nth sample (default: 1)
    --json          Output samples as JSON lines
    -v, --verbose   Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pytelesim import TelemetrySample, TelesimConfig, VehiclePipeline  # noqa: E402
from pytelesim.models import Alert  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preview a deterministic telemetry run.")
    parser.add_argument("--seed", type=int, default=1, help="Random seed (default: 1)")
    parser.add_argument("--samples", type=int, default=12, help="Samples to generate (default: 12)")
    parser.add_argument("--every", type=int, default=1, help="Print every Nth sample (default: 1)")
    parser.add_argument("--json", action="store_true", help="Print samples as JSON lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def _format_line(sample: TelemetrySample, first_ts: int) -> str:
    return " ".join(
        [
            f"{sample.timestamp - first_ts:>5}",
            "ms",
            f"spd={sample.speed_kph:.1f}km/h",
            f"rpm={sample.rpm:.0f}",
            f"g={sample.gear}",
            f"thr={sample.throttle_pct:.0f}%",
            f"brk={sample.brake_pct:.0f}%",
            f"cool={sample.coolant_c:.1f}C",
            f"oil={sample.oil_c:.1f}C",
            f"soc={sample.state_of_charge:.1f}%",
            f"tT(FL)={sample.tire_temps.fl:.1f}C",
        ]
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.samples <= 0 or args.every <= 0:
        print("--samples and --every must be positive", file=sys.stderr)
        return 2

    def _on_critical(alert: Alert) -> None:
        print(f"!! CRITICAL {alert.rule_id}: {alert.message}")

    pipeline = VehiclePipeline(TelesimConfig(seed=args.seed), on_critical=_on_critical)
    pipeline.attach()
    pipeline.engine.reset(args.seed)

    print(f"\nStarting simulation preview (seed={args.seed}, targetSamples={args.samples})...")
    first_ts: int | None = None
    count = 0
    while count < args.samples:
        for sample in pipeline.engine.advance():
            if first_ts is None:
                first_ts = sample.timestamp
            count += 1
            if count % args.every == 0:
                if args.json:
                    print(json.dumps(sample.to_wire()))
                else:
                    print(_format_line(sample, first_ts))

    for alert in pipeline.active_alerts:
        print(f"active alert {alert.rule_id} ({alert.severity.value}): {alert.message}")
    print(f"\nPreview complete. stored={pipeline.repository.size()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
