#!/usr/bin/env python3
"""
Lyrics Translator
=================
Usage:
    python run.py serve
    python run.py translate lyrics.txt --title "Title" --artists "Artist"
    python -m lyrics_translator serve
"""
import sys
from pathlib import Path

# Add package to path if running directly
package_dir = Path(__file__).parent
if str(package_dir) not in sys.path:
    sys.path.insert(0, str(package_dir))

from lyrics_translator.cli import main  # noqa: E402


if __name__ == '__main__':
    sys.exit(main())
