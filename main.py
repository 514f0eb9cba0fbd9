# main.py
"""CLI entry point for the Digital Jester."""

from __future__ import annotations

import argparse

from config import settings
from orchestration.cli_runner import run


def main() -> None:
    """Parse command-line arguments and start the performance."""
    parser = argparse.ArgumentParser(description="Let the Digital Jester guess punchlines.")
    parser.add_argument(
        "--mock",
        action="store_true",
        default=settings.USE_MOCK_JESTER,
        help="Use the offline mock jester instead of the LLM",
    )
    parser.add_argument(
        "--unsafe", action="store_true", help="Disable JokeAPI safe mode"
    )
    parser.add_argument("--mute", action="store_true", help="Disable narration and effects")
    parser.add_argument(
        "--store", default=None, help="Path to the performances JSON-lines file"
    )
    args = parser.parse_args()
    run(
        use_mock=args.mock,
        safe_mode=settings.SAFE_MODE and not args.unsafe,
        audio_enabled=settings.AUDIO_ENABLED and not args.mute,
        store_path=args.store,
    )


if __name__ == "__main__":
    main()
