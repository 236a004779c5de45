import argparse
import logging
from dataclasses import replace

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from chartstream.stream.config import StreamConfig


def main(argv=None):
    parser = argparse.ArgumentParser(description="Chartstream WebSocket server")
    parser.add_argument("--host", type=str, help="Bind address (default from CHARTSTREAM_HOST)")
    parser.add_argument("--port", type=int, help="Listen port (default from CHARTSTREAM_PORT)")
    parser.add_argument("--line-data", type=str, dest="line_data_path", help="Time/value JSON file")
    parser.add_argument("--ohlc-data", type=str, dest="ohlc_data_path", help="OHLC JSON file")
    parser.add_argument("--refresh-interval", type=float, dest="refresh_interval_s",
                        help="Seconds between full refreshes")
    parser.add_argument("--reload-interval", type=float, dest="reload_interval_s",
                        help="Seconds between data reloads (0 = off)")
    args = parser.parse_args(argv)

    overrides = {k: v for k, v in vars(args).items() if v is not None}
    config = replace(StreamConfig.from_env(), **overrides)

    logging.basicConfig(level=config.log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    from chartstream.stream.ws_server import create_app

    print(f"Starting Chartstream on ws://{config.host}:{config.port}/ws")
    print(f"Line data: {config.line_data_path}")
    print(f"OHLC data: {config.ohlc_data_path}")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
