#!/usr/bin/env python3
"""
Bank Account Test Menu Entry Point

Starts the interactive menu on stdin/stdout.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from account_demo.menu import main


if __name__ == "__main__":
    sys.exit(main())
