"""Allow `python -m quill`."""

from quill.cli.app import app

if __name__ == "__main__":
    app()
