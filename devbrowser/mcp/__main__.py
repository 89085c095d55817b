"""Run the devbrowser MCP server on stdio: ``python -m devbrowser.mcp``."""

import asyncio
import logging
import sys

from devbrowser.config.loader import load_config
from devbrowser.mcp.server import DevBrowserMCPServer
from devbrowser.session import DevBrowser


def main() -> None:
    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    server = DevBrowserMCPServer(DevBrowser(load_config()))
    asyncio.run(server.start())


if __name__ == "__main__":
    main()
