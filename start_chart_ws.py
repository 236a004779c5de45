"""
Start Chartstream Server

Quick start script for the chart stream WebSocket server.
"""

from chartstream.scripts.run_chart_ws import main


if __name__ == "__main__":
    print("=" * 80)
    print("CHARTSTREAM WEBSOCKET SERVER")
    print("=" * 80)
    print()
    print("Endpoints:")
    print("  WS   /ws                   - Chart stream (subscribe / unsubscribe / appendData)")
    print("  POST /render/{series_type} - One-shot render of a JSON array")
    print("  GET  /status               - Sessions and data set status")
    print()
    print("Press CTRL+C to stop the server")
    print("=" * 80)
    print()

    try:
        main()
    except KeyboardInterrupt:
        print()
        print("Server stopped")
