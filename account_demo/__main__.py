"""Main entry point for the bank account test menu"""

import sys

from account_demo.menu import main

if __name__ == "__main__":
    sys.exit(main())
