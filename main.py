"""
main.py - Markdown to single-page PDF converter (CLI).

Usage:
    python main.py document.md                    # -> document.pdf (A4, default margins)
    python main.py document.md -o output.pdf      # -> output.pdf
    python main.py document.md --paper A3         # A3 width
    python main.py document.md --margin dense     # 20pt margins
    python main.py --input-dir notes/ --output-dir pdfs/
"""
import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path

import config
from converter import convert, is_margin_preset, is_paper_size
from validator import format_inspection_report, inspect_pdf


@dataclass
class PipelineResult:
    input_path: str
    output_path: str = ""
    success: bool = False
    validation_passed: bool = False
    validation_report: str = ""
    page_height: float = 0.0
    error: str = ""
    duration_seconds: float = 0.0


def process_single_file(input_path: str, output_path: str, paper: str, margin: str,
                        skip_validation: bool = False) -> PipelineResult:
    """Convert one markdown file and optionally inspect the result."""
    result = PipelineResult(input_path=input_path, output_path=output_path)
    start_time = time.time()
    input_file = Path(input_path)

    try:
        print(f"  [1/2] Converting {input_file.name}...")
        conversion = convert(input_path, output_path, paper_size=paper, margin_preset=margin)
        result.page_height = conversion.page_height
        print(f"        Paper: {conversion.paper_size} ({conversion.page_width}pt wide), "
              f"margins: {conversion.margin_preset}, font: {conversion.font_name}")
        if conversion.image_count:
            print(f"        Images: {conversion.loaded_image_count}/{conversion.image_count} loaded")
        print(f"        Page height: {round(conversion.page_height)}pt")

        if skip_validation:
            print(f"  [2/2] Validation skipped (--skip-validation)")
            result.validation_report = "Validation skipped by user."
        else:
            print(f"  [2/2] Inspecting output...")
            inspection = inspect_pdf(output_path, expected_height=conversion.page_height)
            result.validation_passed = inspection.is_valid
            result.validation_report = format_inspection_report(inspection)
            status = "PASS" if inspection.is_valid else "WARN (see report)"
            print(f"        Inspection: {status}")

        result.success = True

    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        logging.getLogger(__name__).debug("Conversion failed", exc_info=True)
        print(f"        ERROR: {result.error}")

    result.duration_seconds = time.time() - start_time
    return result


def _default_output(input_path: Path, output_dir: Path = None) -> Path:
    directory = output_dir if output_dir is not None else input_path.parent
    return directory / f"{input_path.stem}.pdf"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md2pdf",
        description="Markdown to PDF converter - one page, as tall as the content",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Paper sizes (width):
  A1: 594mm, A2: 420mm, A3: 297mm, A4: 210mm, A5: 148mm
  B1: 707mm, B2: 500mm, B3: 353mm, B4: 250mm, B5: 176mm

Margin presets:
  default: 40pt margins (all sides)
  dense:   20pt margins (all sides)

Examples:
  python main.py document.md                  # -> document.pdf
  python main.py document.md -o output.pdf
  python main.py document.md --paper A3 --margin dense
  python main.py --input-dir notes/ --output-dir pdfs/
        """,
    )
    parser.add_argument("input", nargs="?", help="Markdown file to convert")
    parser.add_argument("--output", "-o", help="Output PDF path (default: input with .pdf extension)")
    parser.add_argument("--input-dir", "-d", help="Convert every .md file in this directory")
    parser.add_argument("--output-dir", help="Directory for PDFs in --input-dir mode")
    parser.add_argument("--paper", "-p", default=config.DEFAULT_PAPER_SIZE,
                        help="Paper width: A1-A5, B1-B5 (default: A4)")
    parser.add_argument("--margin", "-m", default=config.DEFAULT_MARGIN_PRESET,
                        help="Margin preset: default, dense (default: default)")
    parser.add_argument("--skip-validation", action="store_true",
                        help="Skip inspection of the generated PDF")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose/debug logging")
    parser.add_argument("--version", action="version", version=f"md2pdf v{config.VERSION}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s [%(name)s] %(message)s",
    )

    if not is_paper_size(args.paper):
        print(f"Error: Invalid paper size: {args.paper}. "
              f"Valid sizes: {', '.join(config.PAPER_SIZES_MM)}")
        return 1
    if not is_margin_preset(args.margin):
        print(f"Error: Invalid margin preset: {args.margin}. "
              f"Valid presets: {', '.join(config.MARGIN_PRESETS)}")
        return 1
    paper = args.paper.upper()
    margin = args.margin.lower()

    # Collect input files
    jobs = []
    if args.input:
        p = Path(args.input).resolve()
        if not p.exists():
            print(f"Error: Input file not found: {p}")
            return 1
        out = Path(args.output).resolve() if args.output else _default_output(p)
        jobs.append((p, out))
    elif args.input_dir:
        input_dir = Path(args.input_dir)
        if not input_dir.is_dir():
            print(f"Error: Input directory '{input_dir}' does not exist.")
            return 1
        out_dir = Path(args.output_dir) if args.output_dir else None
        for md_file in sorted(input_dir.glob("*.md")):
            jobs.append((md_file, _default_output(md_file, out_dir)))
        if not jobs:
            print(f"No markdown files found in '{input_dir}/'")
            return 0
    else:
        print("Error: No input file specified.")
        print("Run with --help for usage information.")
        return 1

    print(f"md2pdf v{config.VERSION}")
    print(f"=" * 50)
    print(f"Processing {len(jobs)} file(s)")
    print()

    results = []
    for idx, (md_file, out_file) in enumerate(jobs, 1):
        print(f"[{idx}/{len(jobs)}] Processing: {md_file.name}")
        result = process_single_file(str(md_file), str(out_file), paper, margin,
                                     args.skip_validation)
        results.append(result)
        print()

    _print_summary(results)
    return 0 if all(r.success for r in results) else 1


def _print_summary(results: list):
    """Print a summary table of all results."""
    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)

    success_count = sum(1 for r in results if r.success)
    passed_count = sum(1 for r in results if r.validation_passed)

    for r in results:
        if r.validation_passed:
            status = "PASS"
        elif r.success:
            status = "OK"
        else:
            status = "ERROR"
        name = Path(r.input_path).name
        print(f"  [{status:5s}] {name:40s} ({r.duration_seconds:.1f}s)")
        if r.error:
            print(f"          Error: {r.error}")
        elif r.success:
            print(f"          -> {r.output_path} ({round(r.page_height)}pt tall)")

    print()
    print(f"Total: {len(results)} | "
          f"Converted: {success_count} | "
          f"Inspected OK: {passed_count} | "
          f"Failed: {len(results) - success_count}")

    # Detailed reports for files that converted but did not inspect cleanly
    for r in results:
        if r.validation_report and not r.validation_passed and r.success \
                and r.validation_report != "Validation skipped by user.":
            print(f"\n--- Detailed report for {Path(r.input_path).name} ---")
            print(r.validation_report)


if __name__ == "__main__":
    sys.exit(main())
