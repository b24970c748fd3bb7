"""
AudioFlow preset render.

1. Load settings from the environment
2. Render one track per category with the default provider
3. Save WAV + proof JSON for each and print a summary
"""

import argparse
import sys
from pathlib import Path

# Ensure audioflow package is importable
sys.path.insert(0, str(Path(__file__).parent))

from audioflow.config import EngineSettings
from audioflow.logging_utils import configure_logging
from audioflow.models.recipe import Category
from audioflow.services.track_service import make_track, save_track


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Render one ambient track per preset.")
    parser.add_argument("--topic", default="focus session")
    parser.add_argument("--duration", type=float, default=20.0)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args(argv)

    settings = EngineSettings.from_env()
    configure_logging(settings.log_level, settings.log_file)
    output_dir = args.out or settings.output_dir

    print("=" * 60)
    print("  AUDIOFLOW - preset render")
    print("=" * 60)

    for category in Category:
        result = make_track(
            topic=args.topic,
            category=category,
            duration_sec=args.duration,
            settings=settings,
            seed=args.seed,
        )
        path = save_track(result, output_dir)
        recipe = result.plan.recipe
        print(f"\n  {category.value}: {path.name}")
        print(f"    sub {recipe.sub_hz:.1f} Hz, cutoff {recipe.noise_cutoff_hz:.0f} Hz, "
              f"pulses {recipe.pulse_density:.2f}/s, target {recipe.target_db:.1f} dB")
        print(f"    {len(result.artifact)} bytes, sha256 {result.proof.short_hash}")

    print("\n" + "=" * 60)
    print(f"  Check {output_dir} for generated WAV files")
    print("=" * 60)


if __name__ == "__main__":
    main()
