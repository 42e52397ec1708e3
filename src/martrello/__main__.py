"""Entry point for martrello CLI."""

import logging
import sys


def main():
    from martrello.cli import build_parser

    parser = build_parser()
    args = parser.parse_args()

    # No subcommand = TUI mode
    if args.noun is None:
        from textual.logging import TextualHandler

        from martrello.cli._common import error
        from martrello.config import load_config
        from martrello.errors import MartrelloError
        from martrello.ui import MartrelloApp

        try:
            config = load_config(api_url=getattr(args, "api", None), data_file=getattr(args, "file", None))
        except MartrelloError as e:
            error(str(e), args.json)
        logging.basicConfig(level=config["log_level"].upper(), handlers=[TextualHandler()])
        MartrelloApp(config).run()
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
