"""Pytest configuration for the Nz test suite."""

import sys
from pathlib import Path

# Add src directory to path for nz imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
