"""Unit tests for utility functions.

Tests deterministic hashing, JSON I/O and logger configuration.
"""

import json
import logging
from pathlib import Path

import pytest

pytestmark = pytest.mark.unit


class TestHashingUtils:
    """Test deterministic hashing utilities."""

    def test_Should_ProduceSHA256Hash_When_StringProvided(self):
        """Should produce deterministic SHA256 hash for string input."""
        from jmxdoc.utils import compute_hash

        hash1 = compute_hash("test_string")
        hash2 = compute_hash("test_string")

        assert hash1 == hash2
        assert len(hash1) == 64  # SHA256 hex digest length

    def test_Should_ProduceSameHash_When_DictKeyOrderDiffers(self):
        """Should produce same hash regardless of dict key order (canonicalization)."""
        from jmxdoc.utils import compute_hash

        assert compute_hash({"a": 1, "b": [1, 2]}) == compute_hash({"b": [1, 2], "a": 1})

    def test_Should_ProduceDifferentHash_When_DocumentContentDiffers(self, sample_document):
        from jmxdoc import editor
        from jmxdoc.serialize import document_to_dict
        from jmxdoc.utils import compute_hash

        changed = editor.add_trial_set(sample_document, "Extra")

        assert compute_hash(document_to_dict(sample_document)) != compute_hash(document_to_dict(changed))


class TestJSONUtils:
    """Test JSON I/O utilities."""

    def test_Should_RoundtripData_When_WritingAndReading(self, tmp_path: Path):
        """Should preserve data through JSON write and read cycle."""
        from jmxdoc.utils import write_json

        data = {"version": 4, "perts": [["p", "sinusoid", 100, 50, 0]], "settings": {"fix": [2.0, 2.0]}}
        path = tmp_path / "doc.jmx"

        write_json(data, path)

        assert json.loads(path.read_text()) == data
        assert path.read_text().endswith("}\n")

    def test_Should_CreateParents_When_MkdirRequested(self, tmp_path: Path):
        from jmxdoc.utils import write_json

        path = tmp_path / "a" / "b" / "doc.jmx"

        write_json({"k": 1}, path, mkdir=True)

        assert path.exists()

    def test_Should_RaiseOSError_When_ParentMissing(self, tmp_path: Path):
        from jmxdoc.utils import write_json

        with pytest.raises(OSError):
            write_json({"k": 1}, tmp_path / "missing" / "doc.jmx")


class TestLoggingUtils:
    """Test logging utility configuration."""

    def test_Should_ConfigureLogger_When_SettingsProvided(self):
        from jmxdoc.utils import configure_logger

        logger = configure_logger("jmxdoc.test_plain", level="debug")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_Should_ReplaceHandlers_When_CalledTwice(self):
        from jmxdoc.utils import configure_logger

        configure_logger("jmxdoc.test_twice")
        logger = configure_logger("jmxdoc.test_twice", level="WARNING")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_Should_EmitParsableJson_When_StructuredModeEnabled(self):
        """Structured records stay valid JSON even when the message contains quotes."""
        from jmxdoc.utils import configure_logger

        logger = configure_logger("jmxdoc.test_structured", level="INFO", structured=True)
        record = logging.LogRecord(name="jmxdoc.x", level=logging.INFO, pathname="", lineno=0, msg="trial 't1' saved", args=(), exc_info=None)

        payload = json.loads(logger.handlers[0].formatter.format(record))

        assert payload["level"] == "INFO"
        assert payload["message"] == "trial 't1' saved"
