#!/usr/bin/env python3
"""
fleetclone - Main Entry Point

Mirrors every project visible on a GitLab instance to local disk
using a bounded pool of concurrent clones.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from fleetclone.cli import main

if __name__ == "__main__":
    main()
