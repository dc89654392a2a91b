"""
Entry point for running the client as a module.

Usage: python -m databridge <command> [options]
"""

from databridge.cli import app

if __name__ == "__main__":
    app()
