"""Run the MDX-PDF service: ``python -m mdxpdf_service --port 8001``."""

import argparse

import uvicorn


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="MDX-PDF Markdown to PDF service")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8001, help="Bind port (default: 8001)")
    parser.add_argument("--log-level", default="info", help="Uvicorn log level (default: info)")
    args = parser.parse_args(argv)

    # Startup failures (bad config, unwritable output dir) exit non-zero
    uvicorn.run("mdxpdf_service.app:app", host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
