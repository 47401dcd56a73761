"""
Run with ``python -m lyrics_translator``.
"""
import sys

from lyrics_translator.cli import main

if __name__ == '__main__':
    sys.exit(main())
