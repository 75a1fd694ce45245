#!/usr/bin/env python3
"""
Ringdash CLI -- one-shot commands against the gateway with readable output.

Usage:
    python main.py status
    python main.py put user:1 Alice
    python main.py get user:1
    python main.py mode async
    python main.py seed
    python main.py --api http://10.0.0.5:8080 status
"""

import sys

from ringdash.cli import main

if __name__ == "__main__":
    sys.exit(main())
