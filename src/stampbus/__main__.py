"""Entry point for running stampbus as a module: python -m stampbus"""

from stampbus.cli import app

if __name__ == "__main__":
    app()
