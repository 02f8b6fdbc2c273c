"""
Module entry point for: python -m quizbowl

Allows running the tool directly as a module:
    python -m quizbowl parse <file> [options]
    python -m quizbowl judge <candidate> <canonical>
    python -m quizbowl serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
