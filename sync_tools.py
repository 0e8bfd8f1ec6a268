#!/usr/bin/env python3
"""
Tool Synchronizer — keep a local tools folder in step with the public index.

Downloads every tool listed on the index page that is new or has changed
since the last run, unpacks ZIP archives in place, and records what was
fetched in ``!!!RemoteFileDetails.csv`` at the destination root.

Requirements:
  pip install requests

Usage:
    python sync_tools.py                                  # both variants, current directory
    python sync_tools.py --dest C:/Tools                  # custom destination
    python sync_tools.py --variant primary                # skip the net6 builds
    python sync_tools.py --list                           # show what would change
    python sync_tools.py --proxy http://proxy:8080 --proxy-user me --proxy-password secret
    python sync_tools.py --proxy http://proxy:8080 --proxy-default-credentials

Exit codes:
    0 — run finished (individual item failures are reported, not fatal)
    1 — the catalog could not be fetched, or the manifest could not be read or written
    2 — invalid options
"""

import sys

from toolsync.core import main


if __name__ == "__main__":
    sys.exit(main())
