"""
Command-line interface for the PDF pipeline.

Usage:
    pdf-pipeline process --input <file.pdf> [--input <file.pdf> ...] [options]
    pdf-pipeline extract --input <file.pdf> [--rules <rules.yaml>]
"""

import argparse
import json
import sys

from pdf_pipeline.core.rules import RuleSetLoader, default_rule_set, json_safe
from pdf_pipeline.exceptions import PipelineError
from pdf_pipeline.observability.logger import configure_logging, get_logger
from pdf_pipeline.observability.metrics import start_metrics_server
from pdf_pipeline.pipeline import DocumentPipeline
from pdf_pipeline.settings import PipelineSettings
from pdf_pipeline.stages import FieldExtractionStage, PdfTextSource

logger = get_logger(__name__)


def _print_outcomes(outcomes) -> None:
    print(json.dumps(json_safe([outcome.to_dict() for outcome in outcomes]), indent=2, default=str))


def process_command(args, settings: PipelineSettings) -> int:
    """
    Run the full read → extract → summarize → write pipeline.

    Args:
        args: Command-line arguments
        settings: Settings from the environment

    Returns:
        Process exit code
    """
    overrides = {
        "ollama_endpoint": args.endpoint,
        "ollama_model": args.model,
        "output_dir": args.output_dir,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v})

    logger.info(f"Processing {len(args.input)} file(s)")
    pipeline = DocumentPipeline.from_settings(
        settings,
        rules_path=args.rules,
        continue_on_fail=args.continue_on_fail,
        page_range=args.page_range,
        api_method=args.api_method,
        file_format=args.format,
        include_timestamp=args.include_timestamp,
        include_metadata=args.include_metadata,
        append=args.append,
    )

    outcomes = pipeline.process(args.input)
    _print_outcomes(outcomes)

    failed = sum(1 for outcome in outcomes if not outcome.success)
    logger.info(f"Processed {len(outcomes)} file(s), {failed} failed")
    return 0 if failed == 0 else 2


def extract_command(args, settings: PipelineSettings) -> int:
    """Read PDFs and print the extracted fields as JSON."""
    rules_path = args.rules or settings.rules_path
    rule_set = RuleSetLoader(rules_path).load() if rules_path else default_rule_set()

    pipeline = DocumentPipeline(
        text_source=PdfTextSource(page_range=args.page_range),
        extraction=FieldExtractionStage(rule_set, include_raw_text=args.include_raw_text),
        continue_on_fail=args.continue_on_fail,
    )
    outcomes = pipeline.extract(args.input)
    _print_outcomes(outcomes)
    return 0 if all(outcome.success for outcome in outcomes) else 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="PDF extraction and summarization pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summarize a PDF with the default rules
  pdf-pipeline process --input reports/march.pdf

  # Custom rules, markdown output, keep going past broken files
  pdf-pipeline process --input a.pdf --input b.pdf \\
      --rules config/extraction_rules.yaml --format md --continue-on-fail

  # Only extract fields and print them
  pdf-pipeline extract --input reports/march.pdf --rules config/extraction_rules.yaml
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--input",
        required=True,
        action="append",
        help="Path to a PDF file (repeat for several files)"
    )
    common.add_argument(
        "--rules",
        default=None,
        help="Path to an extraction rules YAML file (default: built-in rules)"
    )
    common.add_argument(
        "--page-range",
        default="all",
        help="Pages to extract, e.g. 'all', '3' or '1-5' (default: all)"
    )
    common.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Record per-file errors instead of stopping at the first failure"
    )

    process_parser = subparsers.add_parser("process", parents=[common], help="Run the full pipeline")
    process_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for summary files (default: PDF_OUTPUT_DIR or /tmp)"
    )
    process_parser.add_argument(
        "--format",
        default="txt",
        choices=["txt", "md", "json"],
        help="Output file format (default: txt)"
    )
    process_parser.add_argument(
        "--api-method",
        default="generate",
        choices=["generate", "chat"],
        help="Ollama API method (default: generate)"
    )
    process_parser.add_argument("--model", default=None, help="Ollama model (default: OLLAMA_MODEL or llama3)")
    process_parser.add_argument("--endpoint", default=None, help="Ollama base URL (default: OLLAMA_ENDPOINT)")
    process_parser.add_argument("--append", action="store_true", help="Append to existing output files")
    process_parser.add_argument("--include-timestamp", action="store_true", help="Add a timestamp header")
    process_parser.add_argument("--include-metadata", action="store_true", help="Add model metadata")

    extract_parser = subparsers.add_parser("extract", parents=[common], help="Extract fields only")
    extract_parser.add_argument("--include-raw-text", action="store_true", help="Include the PDF text")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = PipelineSettings.from_env()
    configure_logging(level=settings.log_level, format_type=settings.log_format)
    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)

    commands = {
        "process": process_command,
        "extract": extract_command,
    }

    try:
        return commands[args.command](args, settings)
    except (PipelineError, FileNotFoundError) as e:
        logger.error(f"Error during {args.command}: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error during {args.command}: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
