"""Main CLI entry point for the ds-xml command-line tool.

Extracts parent elements whose span contains one of the reference ids listed
in a delimited file and writes them, optionally chunked, as standalone XML
documents wrapped in a synthetic root element.
"""

import argparse
import json
import sys
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from selective_xml_extractor import __version__
from selective_xml_extractor.api import extract_file
from selective_xml_extractor.extraction import DocumentWriter, ExtractionResult
from selective_xml_extractor.shared import (
    AcquisitionError,
    ConfigError,
    ExtractorConfig,
    ExtractorError,
    configure_logging,
    get_logger,
)
from selective_xml_extractor.sources import (
    ReferenceSet,
    downloaded,
    read_head,
    read_reference_ids,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

NO_MATCHES_MESSAGE = "No matching entries found."


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load configuration from a JSON file.

        Raises:
            ConfigError: the file cannot be read or holds invalid settings
        """
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        return cls(ExtractorConfig.from_json(text))

    def apply_arguments(self, args: argparse.Namespace) -> "CLIConfig":
        """Return a copy with every command-line flag that was given applied."""
        overrides: Dict[str, object] = {}
        flag_fields = {
            "node": "extraction__parent_name",
            "ref": "extraction__child_name",
            "chunk": "output__chunk_size",
            "output_dir": "output__output_dir",
            "root_tag": "output__root_tag",
            "timeout": "download__timeout_seconds",
        }
        for flag, field_path in flag_fields.items():
            value = getattr(args, flag)
            if value is not None:
                overrides[field_path] = str(value) if flag == "output_dir" else value
        if args.restrict_to_child:
            overrides["extraction__restrict_to_child"] = True
        if not self.config.global_.correlation_id:
            overrides["global___correlation_id"] = uuid.uuid4().hex[:12]

        return CLIConfig(self.config.override(**overrides))


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="ds-xml",
        description=(
            "Extract parent elements whose content matches a list of reference "
            "ids and write them as standalone XML documents"
        ),
    )

    parser.add_argument("--version", action="version", version=__version__)

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--xml", "-x",
        type=Path,
        help="Input XML file"
    )
    source.add_argument(
        "--url", "-u",
        help="URL to download the input from (.zip, .gz and .tar.gz are unpacked)"
    )

    parser.add_argument(
        "--node", "-n",
        help="Parent element to extract (local name)"
    )
    parser.add_argument(
        "--ref", "-r",
        help="Child element holding the reference id; omit to extract every parent"
    )
    parser.add_argument(
        "--ids", "-i",
        type=Path,
        help="Comma-delimited file of reference ids (required with --ref)"
    )
    parser.add_argument(
        "--restrict-to-child",
        action="store_true",
        help="Only match text directly inside the --ref element"
    )
    parser.add_argument(
        "--head",
        type=int,
        default=0,
        help="Print the first N characters of the input and exit"
    )
    parser.add_argument(
        "--chunk", "-c",
        type=int,
        help="Entries per output file (default: all in one file)"
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        help="Directory for output files (default: output)"
    )
    parser.add_argument(
        "--root-tag",
        help="Name of the synthetic root element (default: root)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Download timeout in seconds"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON configuration file"
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print an extraction summary as JSON"
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    return parser


@contextmanager
def acquire_input(args: argparse.Namespace, config: ExtractorConfig) -> Iterator[Path]:
    """Yield the input XML path, downloading it first when --url is given."""
    if args.url:
        print("Downloading file from url:", args.url)
        with downloaded(args.url, config.download) as xml_path:
            print("xml file downloaded to:", xml_path)
            yield xml_path
        return

    if not args.xml.is_file():
        raise AcquisitionError(f"Input XML file not found: {args.xml}")
    yield args.xml


def load_references(args: argparse.Namespace) -> ReferenceSet:
    """Read the reference ids, which are only needed when a child is named."""
    if args.ids is None:
        return frozenset()
    print("Reading IDs from CSV file:", args.ids)
    return read_reference_ids(args.ids)


def write_results(result: ExtractionResult, config: ExtractorConfig) -> int:
    """Write every chunk, reporting each one; a failed chunk does not stop the rest."""
    writer = DocumentWriter(config.output, config.global_.correlation_id)
    failures = 0

    for index, (path, group) in enumerate(writer.plan(result), start=1):
        print(f"Writing chunk {index} to {path} ... ")
        try:
            writer.write_document(path, group)
        except OSError as e:
            print(f"Error writing chunk {index} to XML file: {e}", file=sys.stderr)
            failures += 1
        else:
            print(f"Captured nodes successfully written to {path}")

    return EXIT_ERROR if failures else EXIT_OK


def cmd_extract(args: argparse.Namespace, config: ExtractorConfig) -> int:
    """Handle a full extraction run."""
    logger = get_logger(__name__, config.global_.correlation_id, "cli")

    with acquire_input(args, config) as xml_path:
        if args.head > 0:
            print(f"Scanned XML content (first {args.head} characters):")
            print(read_head(xml_path, args.head))
            return EXIT_OK

        references = load_references(args)
        print("Parsing XML file:", xml_path)
        result = extract_file(xml_path, references, config)

    logger.info("Extraction finished", extra=result.summary())
    if args.stats:
        print(json.dumps(result.summary(), indent=2))
    for diagnostic in result.diagnostics:
        print(f"{diagnostic.severity.name}: {diagnostic.message}", file=sys.stderr)

    if result.is_empty:
        print(NO_MATCHES_MESSAGE)
        return EXIT_OK

    return write_results(result, config)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        cli_config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
        config = cli_config.apply_arguments(args).config
    except ConfigError as e:
        print(f"Error in configuration: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging(config.global_.logging_level)

    if not config.extraction.parent_name or (args.xml is None and args.url is None):
        parser.print_usage(sys.stderr)
        print("Both --node and one of --xml/--url are required", file=sys.stderr)
        return EXIT_ERROR
    if config.extraction.child_name and args.ids is None and args.head <= 0:
        print("--ids is required when --ref is given", file=sys.stderr)
        return EXIT_ERROR

    try:
        return cmd_extract(args, config)
    except ExtractorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
