"""Sift CLI bootstrap."""

from sift.cli import app

if __name__ == "__main__":
    app()
