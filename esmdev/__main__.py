"""
Main entry point for esmdev when run as a module.

This allows the server to be started using:
    python -m esmdev serve

or the equivalent ``esmdev`` console script.
"""

from .cli import main

if __name__ == "__main__":
    main()
