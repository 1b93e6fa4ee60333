import argparse
import logging
from typing import Optional, Sequence


def serve(
    host: str,
    port: int,
    log_level: str,
) -> None:
    import uvicorn

    log_level = log_level.upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    uvicorn.run(
        "ingest_console.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_keep_alive=30,
        log_level=log_level.lower(),
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="ingest-console")
    parser.add_argument("--host", "-H", default="127.0.0.1", help="Server host")
    parser.add_argument("--port", "-p", type=int, default=8010, help="Server port")
    parser.add_argument("--log-level", "-l", default="INFO", help="Logging level")

    args = parser.parse_args(argv)
    serve(host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
