"""
Site Agent — Collector Connection & Event Reporter
===================================================
Connects this site to the collector, keeps the bearer token fresh, and
reports events. Handshake attempts back off from hourly to weekly when the
collector can't be reached.

Usage:
    python agent.py status
    python agent.py connect
    python agent.py send admin plugin_search --data '{"query": "seo"}'
"""

import sys

from site_agent.runner import main

if __name__ == "__main__":
    sys.exit(main())
