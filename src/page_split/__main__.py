"""
Module entrypoint.

Allows running the tool with `python -m page_split`; the command-line
interface itself lives in cli.py.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
