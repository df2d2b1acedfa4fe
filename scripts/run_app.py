#!/usr/bin/env python
"""
Run the Streamlit film roll simulator.

Usage:
    python scripts/run_app.py [--port 8501] [--host localhost] [--data-dir path/to/csvs]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the film roll simulator UI")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8501)
    parser.add_argument("--data-dir", help="Directory holding vendors.csv, regions.csv and rate_tiers.csv")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    ui_path = project_root / 'src' / 'film_tool' / 'ui' / 'app_streamlit.py'
    if not ui_path.exists():
        print(f"ERROR: UI module not found at {ui_path}")
        sys.exit(1)

    env = os.environ.copy()
    if args.data_dir:
        env['FILM_TOOL_DATA_DIR'] = str(Path(args.data_dir).resolve())

    cmd = [
        sys.executable, '-m', 'streamlit', 'run', str(ui_path),
        '--server.address', args.host,
        '--server.port', str(args.port),
    ]
    print(f"Starting film roll simulator on http://{args.host}:{args.port}")

    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nSimulator stopped.")


if __name__ == "__main__":
    main()
