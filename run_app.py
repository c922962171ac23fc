#!/usr/bin/env python3
"""
Quick launcher for the K2 Chart trading dashboard

Runs from a source checkout without installing the package.
"""

import sys
from pathlib import Path

# Add current directory to path
sys.path.insert(0, str(Path(__file__).parent))

from k2_chart.main import main

if __name__ == "__main__":
    sys.exit(main())
