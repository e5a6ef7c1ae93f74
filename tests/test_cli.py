"""
Test the command-line entry point.
"""

import io

import pytest
from PIL import Image

from conftest import FakeConverter, snapshot_tree
from photoavif import __version__
from photoavif.cli import main, parse_workers
from photoavif.conversion import avif_supported

BASE = "2024年03月05日 10-19-11"

requires_avif = pytest.mark.skipif(not avif_supported(),
                                   reason="Pillow built without AVIF support")


@pytest.fixture
def stub_encoder(monkeypatch):
    """Run the CLI with a stand-in encoder so no AVIF codec is needed."""
    monkeypatch.setattr("photoavif.cli.avif_supported", lambda: True)
    monkeypatch.setattr("photoavif.core.AvifConverter", FakeConverter)


class TestArguments:
    """Test argument parsing and validation."""

    def test_version(self, cli_runner):
        result = cli_runner("--version")

        assert result.exit_code == 0
        assert result.output.strip() == __version__

    def test_missing_directory(self, cli_runner, tmp_path):
        result = cli_runner(tmp_path / "does-not-exist")

        assert result.exit_code == 1
        assert "Directory does not exist" in result.output

    def test_file_instead_of_directory(self, cli_runner, tmp_path):
        not_a_dir = tmp_path / "photo.jpg"
        not_a_dir.write_bytes(b"x")

        result = cli_runner(not_a_dir)

        assert result.exit_code == 1
        assert "Not a directory" in result.output

    def test_missing_avif_support(self, cli_runner, tmp_path, monkeypatch):
        monkeypatch.setattr("photoavif.cli.avif_supported", lambda: False)

        result = cli_runner(tmp_path)

        assert result.exit_code == 1
        assert "cannot write AVIF" in result.output

    @pytest.mark.parametrize("value", ["0", "-3", "many"])
    def test_invalid_workers(self, cli_runner, tmp_path, value):
        result = cli_runner(tmp_path, "--workers", value)
        assert result.exit_code == 2

    def test_parse_workers(self):
        assert parse_workers("3") == 3


class TestRuns:
    """Test complete runs through the CLI."""

    def test_empty_directory(self, cli_runner, tmp_path, stub_encoder):
        result = cli_runner(tmp_path)

        assert result.exit_code == 0
        assert "No photos found" in result.output

    def test_defaults_to_current_directory(self, cli_runner, make_photo, tmp_path,
                                           monkeypatch, stub_encoder):
        make_photo("photo.jpg", capture="2024:03:05 10:19:11")
        monkeypatch.chdir(tmp_path)

        result = cli_runner()

        assert result.exit_code == 0
        assert "Processing completed successfully" in result.output
        assert [p.name for p in tmp_path.iterdir()] == [f"{BASE}.avif"]

    def test_failures_give_partial_exit_code(self, cli_runner, make_photo, create_test_files,
                                             tmp_path, stub_encoder):
        make_photo("photo.jpg", capture="2024:03:05 10:19:11")
        create_test_files([{"name": "corrupt.jpg", "content": b"not a jpeg"}])

        result = cli_runner(tmp_path, "-j", "2")

        assert result.exit_code == 2
        assert "Finished with 1 failed files" in result.output
        assert (tmp_path / "corrupt.jpg").exists()
        assert (tmp_path / f"{BASE}.avif").exists()

    def test_dry_run(self, cli_runner, make_photo, tmp_path, stub_encoder):
        make_photo("photo.jpg", capture="2024:03:05 10:19:11")
        make_photo("album/scan.png")
        before = snapshot_tree(tmp_path)

        result = cli_runner(tmp_path, "--dry-run")

        assert result.exit_code == 0
        assert "DRY RUN" in result.output
        assert snapshot_tree(tmp_path) == before

    def test_second_run_is_a_no_op(self, cli_runner, make_photo, tmp_path, stub_encoder):
        make_photo("photo.jpg", capture="2024:03:05 10:19:11")
        cli_runner(tmp_path)
        after_first = snapshot_tree(tmp_path)

        result = cli_runner(tmp_path)

        assert result.exit_code == 0
        assert "No photos found" in result.output
        assert snapshot_tree(tmp_path) == after_first


@requires_avif
class TestRealConversion:
    """Test end-to-end conversion with the real AVIF encoder."""

    def test_tagged_jpeg(self, cli_runner, make_photo, tmp_path):
        source = make_photo("photo.jpg", capture="2024:03:05 10:19:11", size=(64, 48))

        result = cli_runner(tmp_path)

        output = tmp_path / f"{BASE}.avif"
        assert result.exit_code == 0
        assert not source.exists()
        with Image.open(io.BytesIO(output.read_bytes())) as img:
            assert img.format == "AVIF"
            assert img.size == (64, 48)

    def test_duplicate_capture_times(self, cli_runner, make_photo, tmp_path):
        make_photo("a.jpg", capture="2024:03:05 10:19:11", color=(255, 0, 0))
        make_photo("b.jpg", capture="2024:03:05 10:19:11", color=(0, 0, 255))

        result = cli_runner(tmp_path)

        assert result.exit_code == 0
        assert sorted(p.name for p in tmp_path.iterdir()) == \
            [f"{BASE}(1).avif", f"{BASE}.avif"]

    def test_mixed_formats_in_subdirectories(self, cli_runner, make_photo, tmp_path):
        make_photo("2019/scan.TIFF", capture=None)
        make_photo("2019/logo.png", capture=None, mode="RGBA")
        make_photo("2024/photo.jpeg", capture="2024:03:05 10:19:11")

        result = cli_runner(tmp_path)

        assert result.exit_code == 0
        assert sorted(p.suffix for p in (tmp_path / "2019").iterdir()) == [".avif", ".avif"]
        assert all(p.suffix == ".avif" for p in tmp_path.rglob("*") if p.is_file())
        assert (tmp_path / "2024" / f"{BASE}.avif").exists()
