"""Entry point: ``python -m mcp_bridge`` / ``mcp-bridge``."""

import sys

from mcp_bridge import get_cli


def main(argv=None) -> int:
    cli = get_cli()
    return cli.invoke(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
