"""CLI for bundle-decompiler."""

import argparse
import logging
import os
import sys
import time

from bundle_decompiler.bundle_reader import BundleReader, InputReadError
from bundle_decompiler.domain.models import DecompileOptions, PipelineResult
from bundle_decompiler.format_detector import FormatDetector
from bundle_decompiler.output.json_dumper import to_json
from bundle_decompiler.output.module_writer import ModuleWriter
from bundle_decompiler.pipeline import decompile

logger = logging.getLogger(__name__)


def _stem(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0] or 'bundle'


def _render(result: PipelineResult, as_json: bool) -> str:
    return to_json(result) if as_json else result.merged_code


def _write_text(path: str, text: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def decompile_files(inputs: list[str], output: str | None, options: DecompileOptions,
                    split: bool = False, as_json: bool = False) -> int:
    """Decompile each input independently; returns the number of failed inputs.

    Without ``output`` results go to stdout. With one input and no ``split``
    ``output`` is a file; otherwise it is a directory, with one entry per
    input when there are several.
    """
    reader = BundleReader()
    failures = 0
    many = len(inputs) > 1
    extension = '.json' if as_json else '.js'

    for position, path in enumerate(inputs, start=1):
        print(f"Decompiling {path} ({position}/{len(inputs)})...", file=sys.stderr)
        start_time = time.time()
        try:
            source = reader.read(path)
        except InputReadError as e:
            print(f"Error: {e}", file=sys.stderr)
            failures += 1
            continue

        result = decompile(source.text, options)
        for warning in result.warnings:
            print(f"  warning: {warning}", file=sys.stderr)

        if output is None:
            sys.stdout.write(_render(result, as_json))
            if not result.merged_code.endswith('\n'):
                sys.stdout.write('\n')
        elif split:
            target = os.path.join(output, _stem(path)) if many else output
            written = ModuleWriter(target).write_all(result, source_file=source.filename)
            print(f"  Output: {written.output_dir}", file=sys.stderr)
        else:
            target = os.path.join(output, _stem(path) + extension) if many else output
            _write_text(target, _render(result, as_json))
            print(f"  Output: {target}", file=sys.stderr)

        duration = time.time() - start_time
        print(f"  Done! {len(result.modules)} modules ({len(result.warnings)} warnings) in {duration:.2f}s",
              file=sys.stderr)

    return failures


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(prog='bundle-decompiler', description='Webpack 5 chunk bundle decompiler')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command')

    # decompile command
    decompile_parser = subparsers.add_parser('decompile', help='Decompile one or more bundles')
    decompile_parser.add_argument('inputs', nargs='+', help='Bundle file(s) to decompile')
    decompile_parser.add_argument('--output', '-o', help='Output file, or directory with --split or several inputs')
    decompile_parser.add_argument('--split', action='store_true', help='Write one file per module plus an index')
    decompile_parser.add_argument('--json', action='store_true', help='Emit the full result as JSON')
    decompile_parser.add_argument('--workers', type=int, default=1, help='Worker threads per bundle (default: 1)')
    decompile_parser.add_argument('--no-rename', action='store_true', help='Keep minified parameter names')
    decompile_parser.add_argument('--no-deps', action='store_true', help='Skip dependency extraction')
    decompile_parser.add_argument('--indent', type=int, default=2, help='Indent size (default: 2)')

    # detect command
    detect_parser = subparsers.add_parser('detect', help='Check whether a file is a webpack 5 chunk bundle')
    detect_parser.add_argument('input', help='File to inspect')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.command == 'decompile':
        if args.split and not args.output:
            print("Error: --split requires --output", file=sys.stderr)
            sys.exit(2)
        if args.workers < 1:
            print("Error: --workers must be at least 1", file=sys.stderr)
            sys.exit(2)

        options = DecompileOptions(
            max_workers=args.workers,
            rename=not args.no_rename,
            include_dependencies=not args.no_deps,
            indent_size=args.indent,
        )
        failures = decompile_files(args.inputs, args.output, options, split=args.split, as_json=args.json)
        sys.exit(1 if failures else 0)

    elif args.command == 'detect':
        try:
            source = BundleReader().read(args.input)
        except InputReadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        detection = FormatDetector().detect(source.text)
        if detection.matched:
            print(f"{detection.bundle_format} chunk ({detection.style} push, global {detection.global_name or '?'})")
            sys.exit(0)
        print("Not a recognized bundle")
        sys.exit(1)

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
