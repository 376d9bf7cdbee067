"""
Command-line interface for nahw.

- Aggregating tagged segments into display units
- Detecting idafa constructions in a verse or passage
- Corpus-wide detection
- Scoring a learner's selection
"""
import sys
import argparse
import json
import logging

logger = logging.getLogger(__name__)


def _read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path} is not valid JSON: {e}") from e


def _segment_map(data):
    """Accept either an id -> record object or a list of records carrying ids."""
    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        return {str(record.get('id', '')): record for record in data}
    raise ValueError("Segments must be a JSON object or list")


def _ordered_records(data):
    from nahw.segments import SegmentId

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [{'id': key, **data[key]} for key in sorted(data, key=SegmentId.parse)]
    raise ValueError("Segments must be a JSON object or list")


def cmd_aggregate(args):
    """Group fused morphemes into display units."""
    from nahw.aggregator import aggregate

    try:
        units = aggregate(_ordered_records(_read_json(args.file)))
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.format == 'json':
        payload = [
            {
                'id': unit.id,
                'text': unit.text,
                'segment_ids': [s.id for s in unit.segments],
                'indices': list(unit.indices),
                'rule': unit.rule.value,
                'aggregated': unit.is_aggregated,
            }
            for unit in units
        ]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for unit in units:
            print(f"{unit.id}\t{unit.text}\t({len(unit.segments)} segment(s), {unit.rule.value})")


def cmd_detect(args):
    """Detect idafa constructions in a segment file."""
    from nahw.idafa import IdafaDetector
    from nahw.export import to_json

    try:
        segments = _segment_map(_read_json(args.file))
        lexicon_data = _read_json(args.lexicon) if args.lexicon else None
        result = IdafaDetector(args.config).detect(segments, lexicon_data)
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(to_json(
        result.constructions,
        include_statistics=args.stats,
        include_chains=args.chains,
        prettify=args.pretty,
    ))
    for note in result.notes:
        logger.debug(note)


def cmd_corpus(args):
    """Run detection over a whole corpus file."""
    from nahw.corpus import process_corpus
    from nahw.export import corpus_to_json

    try:
        records = _read_json(args.file)
        if not isinstance(records, list):
            raise ValueError("Corpus file must contain a JSON list of located segments")
        lexicon_data = _read_json(args.lexicon) if args.lexicon else None
        result = process_corpus(records, lexicon_data, args.config, show_progress=args.progress)
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(corpus_to_json(result, include_surah_breakdown=not args.no_breakdown, prettify=args.pretty))


def cmd_score(args):
    """Score a selection of word ids against the correct constructions."""
    from nahw.answer_validator import score

    correct = [[i.strip() for i in group.split(',') if i.strip()] for group in args.correct]
    user = [i.strip() for i in args.user.split(',') if i.strip()]
    result = score(correct, user)

    print(json.dumps({
        'is_correct': result.is_correct,
        'is_partial': result.is_partial,
        'numeric_score': result.numeric_score,
        'similarity': result.similarity,
        'best_index': result.best_index,
    }, indent=2))


def main(argv=None):
    """Main CLI entry point."""
    from nahw import __version__
    from nahw.config import load_config
    from nahw.logging_config import setup_logging

    parser = argparse.ArgumentParser(
        prog='nahw',
        description='nahw: idafa detection and morpheme aggregation for Quranic Arabic',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Group fused morphemes
  nahw aggregate verse.json --format json

  # Detect idafa constructions with statistics and chains
  nahw detect verse.json --stats --chains --pretty
  nahw detect verse.json --lexicon masaq.json

  # Whole corpus
  nahw corpus quran.json --pretty

  # Score a selection
  nahw score --correct 1-2-2-1,1-2-3-1 --user 1-2-2-1
        """
    )
    parser.add_argument('--version', action='version', version=f'nahw {__version__}')
    parser.add_argument('--debug', action='store_true', help='Verbose logging of every rule decision')
    parser.add_argument('--log-file', help='Append log output to this file')
    parser.add_argument('--config', help='JSON file with detector settings')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # --- aggregate command ---
    parser_aggregate = subparsers.add_parser('aggregate', help='Group fused morphemes into units')
    parser_aggregate.add_argument('file', help='JSON list (or id map) of segment records')
    parser_aggregate.add_argument('--format', choices=['text', 'json'], default='text',
                                  help='Output format (default: text)')
    parser_aggregate.set_defaults(func=cmd_aggregate)

    # --- detect command ---
    parser_detect = subparsers.add_parser('detect', help='Detect idafa constructions')
    parser_detect.add_argument('file', help='JSON id map (or list) of segment records')
    parser_detect.add_argument('--lexicon', help='JSON lexicon records (MASAQ-style)')
    parser_detect.add_argument('--chains', action='store_true', help='Include chains in the output')
    parser_detect.add_argument('--stats', action='store_true', help='Include statistics in the output')
    parser_detect.add_argument('--pretty', action='store_true', help='Indent JSON output')
    parser_detect.set_defaults(func=cmd_detect)

    # --- corpus command ---
    parser_corpus = subparsers.add_parser('corpus', help='Corpus-wide idafa detection')
    parser_corpus.add_argument('file', help='JSON list of located corpus segments')
    parser_corpus.add_argument('--lexicon', help='JSON lexicon records (MASAQ-style)')
    parser_corpus.add_argument('--no-breakdown', action='store_true', help='Omit the per-surah breakdown')
    parser_corpus.add_argument('--progress', action='store_true', help='Show a progress bar on stderr')
    parser_corpus.add_argument('--pretty', action='store_true', help='Indent JSON output')
    parser_corpus.set_defaults(func=cmd_corpus)

    # --- score command ---
    parser_score = subparsers.add_parser('score', help='Score a selection against correct constructions')
    parser_score.add_argument('--correct', action='append', required=True,
                              help='Comma-separated word ids of one correct construction (repeatable)')
    parser_score.add_argument('--user', required=True, help='Comma-separated word ids the user selected')
    parser_score.set_defaults(func=cmd_score)

    args = parser.parse_args(argv)

    # If no command specified, show help
    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(log_file=args.log_file, level=logging.WARNING, debug=args.debug)

    try:
        args.config = load_config(args.config)
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    args.func(args)


if __name__ == '__main__':
    main()
