from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP

from porcelain_status.tools import git_status, parse_porcelain

mcp = FastMCP("porcelain-status-mcp")


@mcp.tool()
def git_status_tool(root: str = ".", max_entries: int = 200) -> dict:
    return git_status(root=root, max_entries=max_entries)


@mcp.tool()
def parse_porcelain_tool(output: str, max_entries: int = 200) -> dict:
    return parse_porcelain(output=output, max_entries=max_entries)


def main() -> None:
    # stdout carries the stdio transport
    logging.basicConfig(
        level=os.environ.get("PORCELAIN_STATUS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
