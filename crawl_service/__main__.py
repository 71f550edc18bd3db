import argparse

from .server import SERVICE_HOST, SERVICE_PORT, run


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the crawl-and-chunk endpoint over HTTP.")
    parser.add_argument("--host", default=SERVICE_HOST)
    parser.add_argument("--port", type=int, default=SERVICE_PORT)
    args = parser.parse_args()
    run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
