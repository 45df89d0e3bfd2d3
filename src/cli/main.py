from __future__ import annotations

import argparse
import os

import uvicorn

from src.config import ENV_PREFIX


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the checkers engine HTTP API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--variant", choices=["standard", "turkish"], default=None)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    # The app factory reads its settings from the environment
    if args.variant:
        os.environ[ENV_PREFIX + "VARIANT"] = args.variant
    if args.log_level:
        os.environ[ENV_PREFIX + "LOG_LEVEL"] = args.log_level.upper()

    uvicorn.run("src.protocol.http.app:create_app", factory=True, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
