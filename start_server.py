#!/usr/bin/env python3
"""Convenience script to start the photosets-mcp server."""

import sys


def main():
    """Start the photosets-mcp server."""
    try:
        from photosets_mcp.main import main as server_main
        print("Starting photosets-mcp server...", file=sys.stderr)
        server_main()
    except KeyboardInterrupt:
        print("\nServer stopped by user.", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
