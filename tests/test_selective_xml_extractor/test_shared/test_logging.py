"""Tests for correlation-aware logging."""

import logging

from selective_xml_extractor.shared import CorrelationLogger, get_logger
from selective_xml_extractor.shared.logging import LOG_FORMAT, _ComponentDefaults


class TestCorrelationLogger:
    """Tests for CorrelationLogger."""

    def test_get_logger(self):
        """Test get_logger wires name, correlation id and component."""
        logger = get_logger("selective_xml_extractor.test", "abc123", "walker")

        assert isinstance(logger, CorrelationLogger)
        assert logger.logger.name == "selective_xml_extractor.test"
        assert logger.correlation_id == "abc123"
        assert logger.component == "walker"

    def test_default_component(self):
        """Test the component defaults to the last part of the logger name."""
        logger = get_logger("selective_xml_extractor.sources.references")
        assert logger.component == "references"

    def test_records_carry_structured_fields(self, caplog):
        """Test emitted records include correlation id, component and extras."""
        logger = get_logger("selective_xml_extractor.test", "run-9", "walker")

        with caplog.at_level(logging.INFO, logger="selective_xml_extractor.test"):
            logger.info("Span closed", extra={"spans_matched": 3})

        record = caplog.records[-1]
        assert record.getMessage() == "Span closed"
        assert record.correlation_id == "run-9"
        assert record.component == "walker"
        assert record.spans_matched == 3

    def test_error_with_traceback(self, caplog):
        """Test exception logging keeps the traceback."""
        logger = get_logger("selective_xml_extractor.test")

        with caplog.at_level(logging.ERROR, logger="selective_xml_extractor.test"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("Failed")

        assert caplog.records[-1].exc_info is not None


class TestComponentDefaults:
    """Tests for the record filter used by configure_logging."""

    def test_fills_missing_fields(self):
        """Test plain records get a component and correlation id."""
        record = logging.LogRecord(
            "selective_xml_extractor.cli.main", logging.INFO, __file__, 1, "msg", None, None
        )

        assert _ComponentDefaults().filter(record) is True
        assert record.component == "main"
        assert record.correlation_id is None
        assert "msg" in logging.Formatter(LOG_FORMAT).format(record)
