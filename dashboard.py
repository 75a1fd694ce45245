#!/usr/bin/env python3
"""
Ringdash -- Rich Terminal Dashboard
===================================
Live view of a consistent-hash key-value ring.  Polls the gateway's /status
once a second, draws membership around the ring with per-node load, and lets
the operator switch replication mode and issue puts and gets.

Usage:
    python dashboard.py                              # gateway at http://localhost:8080
    python dashboard.py --api http://10.0.0.5:8080
    python dashboard.py --demo                       # simulated cluster, no gateway needed
    python dashboard.py --poll-ms 500 --fps 60
Controls:
    mouse                                            # hover for details, click to select
    1-9 / n / N / x                                  # select by position, next, previous, clear
    s / a                                            # switch to sync / async replication
    p / g                                            # put / get prompt
    q                                                # quit
"""

import sys

from ringdash.app import main

if __name__ == "__main__":
    sys.exit(main())
