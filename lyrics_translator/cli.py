"""
Command Line Interface
======================
``serve`` runs the control API; ``translate`` translates a lyrics file.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from lyrics_translator.config.constants import PipelineState
from lyrics_translator.host.memory import DEFAULT_LINE_HEIGHT, MemoryDocument


# Colors for terminal output
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'


ARROW = '⇢'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='lyrics-translator', description='Incremental LLM lyrics translator')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('serve', help='Run the control API and pipeline worker')

    translate = sub.add_parser('translate', help='Translate a lyrics file, one line per lyric')
    translate.add_argument('file', type=Path, help='UTF-8 text file with one lyric per line')
    translate.add_argument('--title', help='Song title, sent as context')
    translate.add_argument('--artists', help='Comma-separated artist names, sent as context')
    return parser


def read_lines(path: Path) -> List[str]:
    text = path.read_text(encoding='utf-8')
    return [line.strip() for line in text.splitlines() if line.strip()]


def translate_file(path: Path, title: Optional[str] = None, artists: Optional[str] = None) -> int:
    """Translate ``path`` and print each line with its translation."""
    from lyrics_translator.services.pipeline import TranslationPipeline

    lines = read_lines(path)
    if not lines:
        print(f"{Colors.YELLOW}No lyrics found in {path}{Colors.RESET}")
        return 0

    # The whole song is "on screen" so every line is translated
    document = MemoryDocument(viewport_height=len(lines) * DEFAULT_LINE_HEIGHT)
    pipeline = TranslationPipeline(host=document)
    artist_list = [a.strip() for a in (artists or '').split(',') if a.strip()]
    try:
        pipeline.load_song(lines, title=title, artists=artist_list)
        finished = pipeline.run_until_idle()
        for row in pipeline.rendered_lines():
            if row['translation']:
                print(f"{row['original']} {ARROW} {row['translation']}")
            else:
                print(row['original'])

        status = pipeline.status()
        if not finished:
            print(f"{Colors.RED}Stopped: {status['fatal_error'] or status['message']}{Colors.RESET}", file=sys.stderr)
            return 1
        if status['state'] == PipelineState.SUPPRESSED.value:
            print(f"{Colors.YELLOW}Smart skip: lyrics look like they are already in English{Colors.RESET}",
                  file=sys.stderr)
        return 0
    finally:
        pipeline.close()


def main(argv: List[str] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    if args.command == 'serve':
        from lyrics_translator.app import run_server
        run_server()
        return 0

    if not args.file.is_file():
        print(f"{Colors.RED}File not found: {args.file}{Colors.RESET}", file=sys.stderr)
        return 2
    return translate_file(args.file, title=args.title, artists=args.artists)
