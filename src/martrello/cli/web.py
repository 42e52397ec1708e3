"""Handlers for 'martrello web' command."""

import shlex
import shutil
import sys

from textual_serve.server import Server


def web(args) -> int:
    """Serve the terminal UI in a browser."""
    martrello = shutil.which("martrello")
    if martrello is None:
        print("error: martrello not found on PATH", file=sys.stderr)
        return 1

    parts = [martrello]
    api = getattr(args, "api", None)
    data_file = getattr(args, "file", None)
    if api:
        parts += ["--api", api]
    if data_file:
        parts += ["--file", data_file]
    command = shlex.join(parts)

    server = Server(command, host=args.host, port=args.port, title="martrello")

    print(f"serving martrello at http://{args.host}:{args.port}")
    server.serve()
    return 0
