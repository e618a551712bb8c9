"""Tests for the command-line interface."""

import json
import struct

from click.testing import CliRunner

from conftest import README, ArchiveBuilder, deflate_payload
from sga_toolkit.chunky.chunky import CHUNKY_MAGIC
from sga_toolkit.cli import main


class TestExtractCommand:
    """Tests for `sga-toolkit extract`."""

    def test_extract(self, tmp_path, simple_archive):
        out = tmp_path / "out"
        result = CliRunner().invoke(main, ["extract", str(simple_archive), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "Extracted: 2 files" in result.output
        assert (out / "root" / "readme.txt").read_bytes() == README

    def test_default_output_dir(self, simple_archive):
        result = CliRunner().invoke(main, ["extract", str(simple_archive)])

        assert result.exit_code == 0, result.output
        assert (simple_archive.parent / "ArtJapanese_extracted" / "root" / "data.bin").exists()

    def test_list_only(self, tmp_path, nested_archive):
        result = CliRunner().invoke(main, ["extract", str(nested_archive), "--list-only"])

        assert result.exit_code == 0, result.output
        assert "Files in archive (5):" in result.output
        assert "Data/art/ui/button.txt" in result.output
        assert not (tmp_path / "Data_extracted").exists()

    def test_root_files_only(self, tmp_path, nested_archive):
        out = tmp_path / "out"
        result = CliRunner().invoke(
            main, ["extract", str(nested_archive), "-o", str(out), "--root-files-only"]
        )

        assert result.exit_code == 0, result.output
        assert "Extracted: 1 files" in result.output

    def test_bad_magic(self, tmp_path):
        path = tmp_path / "bad.sga"
        path.write_bytes(b"_ARCHIVX" + b"\x00" * 600)
        result = CliRunner().invoke(main, ["extract", str(path)])

        assert result.exit_code == 1
        assert "Error: Invalid magic" in result.output

    def test_keep_going_reports_failures(self, tmp_path):
        builder = ArchiveBuilder()
        builder.add_toc("data", "Data", root=0, folders=(0, 1), files=(0, 2))
        builder.add_folder("data", files=(0, 2))
        builder.add_file("broken.bin", deflate_payload(b"x"), storage_type=1, uncompressed_size=50)
        builder.add_file("ok.txt", b"ok")
        path = tmp_path / "broken.sga"
        path.write_bytes(builder.build())

        out = tmp_path / "out"
        result = CliRunner().invoke(main, ["extract", str(path), "-o", str(out), "--keep-going"])

        assert result.exit_code == 1
        assert "Extracted: 1 files" in result.output
        assert "data/broken.bin" in result.output
        assert (out / "data" / "ok.txt").read_bytes() == b"ok"


class TestInfoCommand:
    """Tests for `sga-toolkit info`."""

    def test_info(self, nested_archive):
        result = CliRunner().invoke(main, ["info", str(nested_archive)])

        assert result.exit_code == 0, result.output
        assert "Name:     Data" in result.output
        assert "TOCs (1):" in result.output
        assert "4 folders, 5 files" in result.output


class TestRGDCommand:
    """Tests for `sga-toolkit rgd`."""

    def make_rgd(self, tmp_path):
        keys = struct.pack("<I", 1) + struct.pack("<QI", 0x10, 6) + b"health"
        chunks = b""
        for name, payload in ((b"KEYS", keys), (b"AEGD", struct.pack("<I", 0))):
            chunks += b"DATA" + name + struct.pack("<III", 1, len(payload), 0) + payload
        path = tmp_path / "unit.rgd"
        path.write_bytes(CHUNKY_MAGIC + struct.pack("<HHI", 4, 1, 1) + chunks)
        return path

    def test_json_to_file(self, tmp_path):
        path = self.make_rgd(tmp_path)
        out = tmp_path / "unit.json"
        result = CliRunner().invoke(main, ["rgd", str(path), "-o", str(out)])

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["keys"] == {"0x0000000000000010": "health"}

    def test_text_to_stdout(self, tmp_path):
        path = self.make_rgd(tmp_path)
        result = CliRunner().invoke(main, ["rgd", str(path), "--format", "text"])

        assert result.exit_code == 0, result.output
        assert "0x0000000000000010 health" in result.output
