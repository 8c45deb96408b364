"""
KeyCorrect command line
=======================
Manage custom words and try suggestions without a keyboard attached.

Examples:
    keycorrect --add jagoan --lang id
    keycorrect --list
    keycorrect --export backup.zip
    keycorrect --import backup.zip --replace
    keycorrect --suggest wrld
"""

import json
import sys
from typing import List, Optional

from .config import get_config
from .dictionary.results import ImportMode
from .dictionary.store import WordStore
from .spelling.ranker import SuggestionRanker


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(prog='keycorrect', description='KeyCorrect custom dictionary manager')
    parser.add_argument('--dict-dir', type=str, help='Directory with base dictionaries')
    parser.add_argument('--custom-dir', type=str, help='Directory with custom word files')
    parser.add_argument('--languages', type=str, help='Comma separated languages to load (e.g. en,id)')
    parser.add_argument('--lang', type=str, help='Language for --add/--remove/--clear')

    parser.add_argument('--add', type=str, metavar='WORD', help='Add a custom word')
    parser.add_argument('--remove', type=str, metavar='WORD', help='Remove a custom word')
    parser.add_argument('--list', action='store_true', help='List custom words by language')
    parser.add_argument('--clear', action='store_true', help='Clear custom words (all languages unless --lang)')

    parser.add_argument('--export', type=str, metavar='PATH', help='Export custom words to a backup archive')
    parser.add_argument('--import', dest='import_path', type=str, metavar='PATH',
                        help='Import custom words from a backup archive')
    parser.add_argument('--replace', action='store_true', help='With --import: replace instead of merge')

    parser.add_argument('--suggest', type=str, metavar='WORD', help='Show ranked suggestions for a word')
    parser.add_argument('--status', action='store_true', help='Show store status as JSON')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    languages = [code.strip() for code in args.languages.split(',') if code.strip()] if args.languages else None

    store = WordStore(dict_dir=args.dict_dir, custom_dir=args.custom_dir, config=config)
    report = store.load(languages)
    for code in report.failed_languages:
        print(f"Warning: could not load '{code}': {report[code].error}", file=sys.stderr)

    lang = args.lang or (store.get_loaded_languages() or config.dictionary.languages)[0]
    exit_code = 0

    if args.add:
        result = store.add_custom_word(args.add, lang)
        if result.success:
            print(f"Added '{result.word}' to {lang}")
        else:
            print(f"Not added '{result.word}': {result.status.value}"
                  + (f" ({result.reason})" if result.reason else ""))
            exit_code = 1

    if args.remove:
        if store.remove_custom_word(args.remove, lang):
            print(f"Removed '{args.remove.strip().lower()}' from {lang}")
        else:
            print(f"'{args.remove}' is not a custom word in {lang}")
            exit_code = 1

    if args.clear:
        if not store.clear_custom_words(args.lang):
            exit_code = 1
        print("Cleared custom words" + (f" for {args.lang}" if args.lang else ""))

    if args.import_path:
        mode = ImportMode.REPLACE if args.replace else ImportMode.MERGE
        result = store.import_custom_words(args.import_path, mode)
        if result.success:
            print(f"Imported {result.added_words} of {result.total_words} words "
                  f"({result.duplicate_words} duplicates, {result.invalid_words} invalid, "
                  f"{result.error_words} errors)")
            for code, count in sorted(result.language_breakdown.items()):
                print(f"  {code}: {count}")
        else:
            print(f"Import failed: {result.message}")
            exit_code = 1

    if args.export:
        result = store.export_custom_words(args.export)
        if result.success:
            print(f"Exported {result.word_count} words in {result.language_count} languages to {args.export}")
        else:
            print(f"Export skipped: {result.message}")
            exit_code = 1

    if args.list:
        words = store.get_custom_words_by_language()
        if not words:
            print("No custom words")
        for code, entries in words.items():
            print(f"{code} ({len(entries)}):")
            for word in entries:
                print(f"  {word}")

    if args.suggest:
        ranker = SuggestionRanker(store, config=config)
        suggestions = ranker.rank(args.suggest)
        if not suggestions:
            print(f"No suggestions for '{args.suggest}'")
        for s in suggestions:
            print(f"  {s.word:<20} {s.confidence:.3f}  {s.source.value:<11} distance={s.edit_distance}")

    if args.status:
        print(json.dumps(store.get_status(), indent=2))

    return exit_code


if __name__ == '__main__':
    sys.exit(main())
