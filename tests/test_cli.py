"""Integration tests for the main CLI entry point."""

from __future__ import annotations

import base64
import hashlib
import json
import re
from pathlib import Path

from click.testing import CliRunner

from upload_digest.__main__ import main


def _clean(output: str) -> str:
    return re.sub(r'\x1b\[[0-9;]*m', '', output)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class TestMainCLI:
    """Test main CLI functionality."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_main_help(self) -> None:
        """Test main help command loads correctly."""
        result = self.runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Compute Digest headers for HTTP uploads" in result.output
        assert "Commands:" in result.output

    def test_version_command(self) -> None:
        result = self.runner.invoke(main, ["version"])
        assert result.exit_code == 0
        assert "upload-digest 0.1.0" in _clean(result.output)

    def test_version_command_verbose(self) -> None:
        result = self.runner.invoke(main, ["--verbose", "version"])
        assert result.exit_code == 0
        clean_output = _clean(result.output)
        assert "upload-digest 0.1.0" in clean_output
        assert "Platform:" in clean_output

    def test_version_command_json_output(self) -> None:
        result = self.runner.invoke(main, ["--output", "json", "version"])
        assert result.exit_code == 0

        json_output = json.loads(result.output.strip())
        assert json_output["name"] == "upload-digest"
        assert json_output["version"] == "0.1.0"

    def test_invalid_output_format(self) -> None:
        result = self.runner.invoke(main, ["--output", "yaml", "version"])
        assert result.exit_code != 0

    def test_config_file(self, temp_dir: Path) -> None:
        """Test the digest algorithm is taken from the config file."""
        config_file = temp_dir / "config.json"
        config_file.write_text(json.dumps({"digest": {"algorithm": "SHA-512"}}))
        upload = temp_dir / "upload.bin"
        upload.write_bytes(b"abc")

        result = self.runner.invoke(
            main, ["--config", str(config_file), "--output", "plain", "header", str(upload)]
        )

        assert result.exit_code == 0
        expected = _b64(hashlib.sha512(b"abc").digest())
        assert result.output.strip() == f"Digest: SHA-512={expected}"

    def test_invalid_config_file(self, temp_dir: Path) -> None:
        config_file = temp_dir / "config.json"
        config_file.write_text(json.dumps({"chunk_size": -5}))

        result = self.runner.invoke(main, ["--config", str(config_file), "version"])
        assert result.exit_code == 1


class TestAlgorithmsCommand:
    """Test the algorithms command."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_plain(self) -> None:
        result = self.runner.invoke(main, ["--output", "plain", "algorithms"])
        assert result.exit_code == 0
        assert result.output.split() == ["SHA-1", "SHA-256", "SHA-384", "SHA-512"]

    def test_json(self) -> None:
        result = self.runner.invoke(main, ["--output", "json", "algorithms"])
        assert result.exit_code == 0

        data = json.loads(result.output)
        assert data["default"] == "SHA-256"
        assert "SHA-1" in data["algorithms"]

    def test_rich_table(self) -> None:
        result = self.runner.invoke(main, ["algorithms"])
        assert result.exit_code == 0
        clean_output = _clean(result.output)
        assert "Digest Algorithms" in clean_output
        assert "SHA-384" in clean_output


class TestHeaderCommand:
    """Test the header command."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def _write(self, temp_dir: Path, data: bytes) -> Path:
        path = temp_dir / "contract.pdf"
        path.write_bytes(data)
        return path

    def test_default_algorithm(self, temp_dir: Path, sample_data: bytes) -> None:
        path = self._write(temp_dir, sample_data)

        result = self.runner.invoke(main, ["--output", "plain", "header", str(path)])

        assert result.exit_code == 0
        expected = _b64(hashlib.sha256(sample_data).digest())
        assert result.output.strip() == f"Digest: SHA-256={expected}"

    def test_sha1_abc(self, temp_dir: Path) -> None:
        path = self._write(temp_dir, b"abc")

        result = self.runner.invoke(
            main, ["--output", "plain", "header", "--algorithm", "SHA1", str(path)]
        )

        assert result.exit_code == 0
        assert result.output.strip() == "Digest: SHA1=qZk+NkcGgWq6PiVxeFDCbJzQ2J0="

    def test_offset(self, temp_dir: Path, sample_data: bytes) -> None:
        path = self._write(temp_dir, sample_data)

        result = self.runner.invoke(
            main, ["--output", "json", "header", "--offset", "9", str(path)]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        expected = _b64(hashlib.sha256(sample_data[9:]).digest())
        assert data["value"] == f"SHA-256={expected}"
        assert data["header"] == "Digest"
        assert data["offset"] == 9
        assert data["size"] == len(sample_data) - 9

    def test_unknown_algorithm_falls_back(self, temp_dir: Path) -> None:
        path = self._write(temp_dir, b"abc")

        result = self.runner.invoke(
            main, ["--output", "json", "header", "-a", "FOO", str(path)]
        )

        # The fallback warning may be interleaved on stderr
        assert result.exit_code == 0
        assert '"algorithm": "SHA-256"' in result.output

    def test_rich_output(self, temp_dir: Path) -> None:
        path = self._write(temp_dir, b"abc")

        result = self.runner.invoke(main, ["--verbose", "header", "-a", "SHA1", str(path)])

        assert result.exit_code == 0
        clean_output = _clean(result.output)
        assert "Digest: SHA1=qZk+NkcGgWq6PiVxeFDCbJzQ2J0=" in clean_output
        assert "3 B" in clean_output

    def test_missing_file(self, temp_dir: Path) -> None:
        result = self.runner.invoke(main, ["header", str(temp_dir / "missing.pdf")])
        assert result.exit_code != 0
