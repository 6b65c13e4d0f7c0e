"""Command-line entrypoint serving the sessions API."""

import argparse

import uvicorn


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SyncSphere advanced sessions API.")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind.")
    parser.add_argument("--port", default=8000, type=int, help="Port to serve on.")
    parser.add_argument(
        "--reload", action="store_true", help="Enable autoreload (development only)."
    )
    parser.add_argument("--log-level", default="info", help="Uvicorn log level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Serve the API in one process; drivers live in this process's loop."""
    args = parse_args(argv)
    uvicorn.run(
        "syncsphere.api.asgi:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
        workers=1,
    )


if __name__ == "__main__":
    main()
