"""
Package entry point.

Allows running the application via:

    python -m myportal

This simply forwards execution to myportal.cli.main().
"""

from myportal.cli import main

if __name__ == "__main__":
    main()
