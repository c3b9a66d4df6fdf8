"""
Convenience launcher — starts the focusguard engine and reports where it listens.

Usage:
    python start.py
    python start.py --port 8800
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys


def start_engine(port: int | None) -> subprocess.Popen:
    env = dict(os.environ)
    if port is not None:
        env["FG_API_PORT"] = str(port)
    return subprocess.Popen(
        [sys.executable, "-m", "focusguard.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
        env=env,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the focusguard engine")
    parser.add_argument("--port", type=int, default=None, help="Override the API port")
    args = parser.parse_args()

    from focusguard.config import config
    port = args.port or config.api_port

    print("Starting focusguard engine…")
    engine_proc = start_engine(args.port)

    print(f"\nEngine → http://{config.api_host}:{port}")
    print("Control it with: focusguard status | start | pause | resume | stop")
    print("Press Ctrl+C to stop.\n")

    try:
        engine_proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        engine_proc.terminate()
        engine_proc.wait()


if __name__ == "__main__":
    main()
