import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Inventory Service API")
    parser.add_argument("--host", required=True, help="Host address")
    parser.add_argument("-p", "--port", type=int, required=True, help="Port number")
    parser.add_argument("-c", "--cache", required=True, help="Cache directory for the catalog and photos")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--reload", action="store_true")

    args = parser.parse_args()

    # Settings are read from the environment when the app module is imported
    os.environ["HOST"] = args.host
    os.environ["PORT"] = str(args.port)
    os.environ["CACHE_DIR"] = os.path.abspath(args.cache)
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level

    uvicorn.run("inventory_service.main:app", host=args.host, port=args.port, reload=args.reload, log_config=None)


if __name__ == "__main__":
    main()
