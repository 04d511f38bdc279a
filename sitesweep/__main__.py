"""
Main entry point for the sitesweep package.

Allows running the crawler as: python -m sitesweep
"""

from sitesweep.cli import main

if __name__ == "__main__":
    main()
