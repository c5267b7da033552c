#!/usr/bin/env python3

"""
Example script that drives the control panel against a running backend.

Reads the backend URL (SMARTHOME_URL) from an environment variable and the
panel markup from an HTML file, then runs the page-load sequence and the
pattern demos named on the command line.

Usage:
  export SMARTHOME_URL="http://localhost:8080"
  python3 run_patterns.py index.html singleton factory observer
"""

import argparse
import asyncio
import logging
import os
from pathlib import Path

from smarthome_panel import ControlPanel, MemorySink, Page, PanelClient

# --- Configuration ---
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)

SERVER_URL = os.getenv("SMARTHOME_URL", "http://localhost:8080")

# --- Argument Parsing ---
parser = argparse.ArgumentParser(description="Run smart-home pattern demos.")
parser.add_argument("markup", help="HTML file with the panel markup.")
parser.add_argument("patterns", nargs="*", help="Pattern ids to run.")
args = parser.parse_args()


async def main():
    """Load the panel and click every requested pattern button."""
    page = Page.from_html(Path(args.markup).read_text(encoding="utf-8"))
    sink = MemorySink()
    panel = ControlPanel(page, PanelClient(SERVER_URL), sinks=[sink])
    try:
        await panel.async_load()
        for pattern_id in args.patterns:
            button = page.select_one(f'.pattern-run-btn[data-pattern="{pattern_id}"]')
            if button is None:
                logging.info("No run button for %s, calling the catalog directly", pattern_id)
                await panel.dispatcher.run_pattern(pattern_id)
            else:
                page.click(button)
        await panel.dispatcher.drain()
    finally:
        await panel.async_close()

    for entry in reversed(sink.entries):
        print(entry.render())
        print()


if __name__ == "__main__":
    asyncio.run(main())
