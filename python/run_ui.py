#!/usr/bin/env python3
"""
Launch the Reverse LLM Streamlit UI.
"""

from __future__ import annotations

import argparse
import os
import subprocess
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the Reverse LLM Streamlit UI.",
    )
    parser.add_argument("--port", type=int, default=8502, help="Streamlit port (default: 8502).")
    parser.add_argument("--host", default="0.0.0.0", help="Streamlit bind host.")
    parser.add_argument(
        "--questions",
        default=None,
        help="Override the sample threads JSON (default: packaged questions.json).",
    )
    parser.add_argument(
        "--fetch-seconds",
        type=float,
        default=None,
        help="Simulated fetch duration in seconds.",
    )
    return parser.parse_args()


def build_env(args: argparse.Namespace) -> dict[str, str]:
    env = os.environ.copy()
    if args.questions:
        env["REVERSE_LLM_QUESTIONS_PATH"] = str(Path(args.questions).expanduser())
    if args.fetch_seconds is not None:
        env["REVERSE_LLM_FETCH_SECONDS"] = str(args.fetch_seconds)
    return env


def main() -> None:
    args = parse_args()
    env = build_env(args)

    cmd = [
        "streamlit",
        "run",
        "streamlit_ui.py",
        "--server.port",
        str(args.port),
        "--server.address",
        args.host,
    ]
    print(
        f"Starting Reverse LLM UI bind=http://{args.host}:{args.port} "
        f"questions={env.get('REVERSE_LLM_QUESTIONS_PATH', 'packaged')}"
    )
    subprocess.run(cmd, check=True, cwd=Path(__file__).parent, env=env)


if __name__ == "__main__":
    main()
