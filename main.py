"""StorySmith dev launcher. Starts the API server in watch mode."""

import argparse
import logging
import os
import subprocess
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="StorySmith dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo projects (one per stage)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.demo:
        from storysmith.demo import create_demo_data
        from storysmith.storage import open_storage
        _, projects = open_storage(args.data_dir or ROOT / "data")
        create_demo_data(projects)

    # The server reads its data dir from the environment
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    print(f"Starting StorySmith on http://localhost:{PORT} ...")
    try:
        subprocess.run(
            ["uvicorn", "storysmith.app:app", "--reload", "--host", HOST, "--port", PORT],
            cwd=ROOT, env=env, check=False,
        )
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    main()
