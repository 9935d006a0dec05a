"""Tests for the CLI main module."""

import json
import tempfile
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import patch

import pytest

from selective_xml_extractor.cli.main import (
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_OK,
    NO_MATCHES_MESSAGE,
    CLIConfig,
    create_argument_parser,
    main,
)
from selective_xml_extractor.shared import ConfigError

JOBS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<jobs>
  <job><job_reference>12345</job_reference></job>
  <job><job_reference>67890</job_reference></job>
  <job><job_reference>55555</job_reference></job>
</jobs>
"""


@pytest.fixture
def inputs(tmp_path):
    xml_path = tmp_path / "jobs.xml"
    xml_path.write_bytes(JOBS_XML)
    ids_path = tmp_path / "ids.csv"
    ids_path.write_text("12345,67890\n", encoding="utf-8")
    return xml_path, ids_path, tmp_path / "out"


def _run(xml_path, ids_path, out_dir, *extra):
    return main([
        "--xml", str(xml_path),
        "--node", "job",
        "--ref", "job_reference",
        "--ids", str(ids_path),
        "--output-dir", str(out_dir),
        *extra,
    ])


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig().config
        assert config.output.chunk_size == 0
        assert config.output.root_tag == "root"

    def test_config_from_file(self):
        """Test loading configuration from file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({"output": {"root_tag": "export", "chunk_size": 2}}, f)
            config_path = Path(f.name)

        try:
            config = CLIConfig.from_file(config_path).config
            assert config.output.root_tag == "export"
            assert config.output.chunk_size == 2
        finally:
            config_path.unlink()

    def test_config_from_nonexistent_file(self):
        """Test a missing config file is a configuration error."""
        with pytest.raises(ConfigError):
            CLIConfig.from_file(Path("nonexistent.json"))

    def test_apply_arguments(self):
        """Test flags override file settings and a correlation id is assigned."""
        parser = create_argument_parser()
        args = parser.parse_args([
            "--xml", "in.xml", "--node", "job", "--ref", "id",
            "--chunk", "3", "--output-dir", "results", "--restrict-to-child",
        ])

        config = CLIConfig().apply_arguments(args).config

        assert config.extraction.parent_name == "job"
        assert config.extraction.child_name == "id"
        assert config.extraction.restrict_to_child is True
        assert config.output.chunk_size == 3
        assert config.output.output_dir == "results"
        assert config.global_.correlation_id

    def test_unset_flags_keep_file_values(self):
        """Test flags that were not given leave configured values alone."""
        parser = create_argument_parser()
        args = parser.parse_args(["--xml", "in.xml", "--node", "job"])
        base = CLIConfig().config.override(output__root_tag="export")

        config = CLIConfig(base).apply_arguments(args).config

        assert config.output.root_tag == "export"


class TestArgumentParser:
    """Test argument parser creation."""

    def test_parser_defaults(self):
        """Test defaults for optional flags."""
        args = create_argument_parser().parse_args(["--xml", "in.xml", "--node", "job"])
        assert args.xml == Path("in.xml")
        assert args.url is None
        assert args.head == 0
        assert args.chunk is None
        assert args.stats is False

    def test_xml_and_url_exclusive(self):
        """Test --xml and --url cannot both be given."""
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(
                ["--xml", "a.xml", "--url", "http://example.com/a.xml"]
            )

    def test_short_flags(self):
        """Test the short flag aliases."""
        args = create_argument_parser().parse_args(
            ["-x", "a.xml", "-n", "job", "-r", "id", "-i", "ids.csv", "-c", "10"]
        )
        assert args.node == "job"
        assert args.ref == "id"
        assert args.ids == Path("ids.csv")
        assert args.chunk == 10


class TestMainFunction:
    """Test main CLI function."""

    def test_extract_to_file(self, inputs, capsys):
        """Test a full run writes one document with the matching entries."""
        xml_path, ids_path, out_dir = inputs

        assert _run(xml_path, ids_path, out_dir) == EXIT_OK

        output = out_dir / "job_job_reference_part-1.xml"
        assert output.read_text(encoding="utf-8") == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            "<root>\n"
            "<job><job_reference>12345</job_reference></job>\n"
            "<job><job_reference>67890</job_reference></job>\n"
            "</root>\n"
        )
        stdout = capsys.readouterr().out
        assert "Reading IDs from CSV file:" in stdout
        assert "Parsing XML file:" in stdout
        assert f"Captured nodes successfully written to {output}" in stdout

    def test_chunked_output(self, inputs):
        """Test --chunk splits the entries across files."""
        xml_path, ids_path, out_dir = inputs

        assert _run(xml_path, ids_path, out_dir, "--chunk", "1") == EXIT_OK

        assert sorted(p.name for p in out_dir.iterdir()) == [
            "job_job_reference_part-1.xml",
            "job_job_reference_part-2.xml",
        ]

    def test_all_children(self, inputs):
        """Test omitting --ref extracts every parent without an ids file."""
        xml_path, _, out_dir = inputs

        code = main(["--xml", str(xml_path), "--node", "job", "-o", str(out_dir)])

        assert code == EXIT_OK
        text = (out_dir / "job_all_part-1.xml").read_text(encoding="utf-8")
        assert text.count("<job>") == 3

    def test_no_matches(self, inputs, capsys):
        """Test no output files and a message when nothing matches."""
        xml_path, ids_path, out_dir = inputs
        ids_path.write_text("00000\n", encoding="utf-8")

        assert _run(xml_path, ids_path, out_dir) == EXIT_OK

        assert NO_MATCHES_MESSAGE in capsys.readouterr().out
        assert not out_dir.exists()

    def test_malformed_input(self, inputs, capsys):
        """Test malformed XML exits with an error and writes nothing."""
        xml_path, ids_path, out_dir = inputs
        xml_path.write_bytes(b"<jobs><job><job_reference>12345</job_reference></jobs>")

        assert _run(xml_path, ids_path, out_dir) == EXIT_ERROR

        assert "Error:" in capsys.readouterr().err
        assert not out_dir.exists()

    def test_missing_input_file(self, inputs, capsys):
        """Test a missing input file is reported."""
        _, ids_path, out_dir = inputs

        assert _run(Path("does-not-exist.xml"), ids_path, out_dir) == EXIT_ERROR
        assert "Input XML file not found" in capsys.readouterr().err

    def test_missing_ids_file(self, inputs, capsys):
        """Test an unreadable ids file is reported."""
        xml_path, ids_path, out_dir = inputs
        ids_path.unlink()

        assert _run(xml_path, ids_path, out_dir) == EXIT_ERROR
        assert "Error:" in capsys.readouterr().err

    def test_missing_required_arguments(self, capsys):
        """Test usage errors without --node or an input."""
        assert main(["--xml", "jobs.xml"]) == EXIT_ERROR
        assert main(["--node", "job"]) == EXIT_ERROR
        assert "Both --node and one of --xml/--url are required" in capsys.readouterr().err

    def test_ref_requires_ids(self, inputs, capsys):
        """Test --ref without --ids is rejected."""
        xml_path, _, _ = inputs

        code = main(["--xml", str(xml_path), "--node", "job", "--ref", "job_reference"])

        assert code == EXIT_ERROR
        assert "--ids is required" in capsys.readouterr().err

    def test_head(self, inputs, capsys):
        """Test --head prints the start of the input and skips extraction."""
        xml_path, _, out_dir = inputs

        code = main([
            "--xml", str(xml_path), "--node", "job", "--head", "5", "-o", str(out_dir),
        ])

        assert code == EXIT_OK
        stdout = capsys.readouterr().out
        assert "Scanned XML content (first 5 characters):" in stdout
        assert "<?xml" in stdout
        assert not out_dir.exists()

    def test_stats(self, inputs, capsys):
        """Test --stats prints the extraction summary."""
        xml_path, ids_path, out_dir = inputs

        assert _run(xml_path, ids_path, out_dir, "--stats") == EXIT_OK

        stdout = capsys.readouterr().out
        start = stdout.index("{")
        summary, _ = json.JSONDecoder().raw_decode(stdout[start:])
        assert summary["spans_considered"] == 3
        assert summary["spans_matched"] == 2

    def test_config_file(self, inputs, tmp_path):
        """Test settings from --config are used."""
        xml_path, ids_path, out_dir = inputs
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"output": {"root_tag": "export"}}), encoding="utf-8")

        assert _run(xml_path, ids_path, out_dir, "--config", str(config_path)) == EXIT_OK

        text = (out_dir / "job_job_reference_part-1.xml").read_text(encoding="utf-8")
        assert "<export>\n" in text

    def test_invalid_config_file(self, inputs, tmp_path, capsys):
        """Test an invalid configuration file is reported."""
        xml_path, ids_path, out_dir = inputs
        config_path = tmp_path / "config.json"
        config_path.write_text('{"output": {"chunk_size": -1}}', encoding="utf-8")

        assert _run(xml_path, ids_path, out_dir, "--config", str(config_path)) == EXIT_ERROR
        assert "Error in configuration" in capsys.readouterr().err

    def test_write_failure(self, inputs, tmp_path, capsys):
        """Test a chunk that cannot be written is reported."""
        xml_path, ids_path, _ = inputs
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")

        assert _run(xml_path, ids_path, blocker) == EXIT_ERROR
        assert "Error writing chunk 1 to XML file" in capsys.readouterr().err

    def test_url_input(self, inputs, capsys):
        """Test --url downloads the input before extracting."""
        xml_path, ids_path, out_dir = inputs

        @contextmanager
        def fake_downloaded(url, config=None):
            yield xml_path

        with patch("selective_xml_extractor.cli.main.downloaded", fake_downloaded):
            code = main([
                "--url", "https://example.com/jobs.xml.gz",
                "--node", "job", "--ref", "job_reference",
                "--ids", str(ids_path), "-o", str(out_dir),
            ])

        assert code == EXIT_OK
        stdout = capsys.readouterr().out
        assert "Downloading file from url: https://example.com/jobs.xml.gz" in stdout
        assert (out_dir / "job_job_reference_part-1.xml").exists()

    def test_keyboard_interrupt(self, inputs):
        """Test keyboard interrupt handling."""
        xml_path, ids_path, out_dir = inputs

        with patch("selective_xml_extractor.cli.main.cmd_extract", side_effect=KeyboardInterrupt):
            assert _run(xml_path, ids_path, out_dir) == EXIT_INTERRUPTED
