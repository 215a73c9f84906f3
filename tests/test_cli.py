"""Tests for foldercompare.cli — CLI argument parsing and subcommands."""

from foldercompare.cli import _format_size
from foldercompare.cli import build_parser
from foldercompare.cli import cmd_compare
from foldercompare.cli import cmd_datesort
from foldercompare.cli import cmd_dupes
from foldercompare.cli import cmd_flatten
from foldercompare.cli import cmd_prune
from foldercompare.cli import cmd_scan
from foldercompare.cli import cmd_unique
from foldercompare.config import merge_config_into_args

import logging
import pathlib
import pytest


def _args(*argv: str):
    """Parse a subcommand line the way main() does, with progress bars off."""
    args = build_parser().parse_args([*argv, "--no-progress"])
    merge_config_into_args(args, {})
    return args


class TestBuildParser:
    """Test argparse parser construction."""

    def test_dupes_subcommand(self):
        parser = build_parser()
        args = parser.parse_args(["dupes", "/tmp/source"])
        assert args.command == "dupes"
        assert args.root == pathlib.Path("/tmp/source")
        assert args.delete is False

    def test_unset_options_are_none(self):
        parser = build_parser()
        args = parser.parse_args(["dupes", "/tmp/source"])
        assert args.match is None
        assert args.dry_run is None
        assert args.progress is None
        assert args.chunk_size is None

    def test_compare_subcommand(self):
        parser = build_parser()
        args = parser.parse_args(["compare", "/a", "/b", "--delete-from", "B", "--match", "name"])
        assert args.folder_a == pathlib.Path("/a")
        assert args.folder_b == pathlib.Path("/b")
        assert args.delete_from == "B"
        assert args.match == "name"

    def test_invalid_delete_from_rejected(self):
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["compare", "/a", "/b", "--delete-from", "C"])

    def test_unique_copy_flag(self):
        parser = build_parser()
        args = parser.parse_args(["unique", "/a", "/b", "--copy", "--dry-run"])
        assert args.copy is True
        assert args.dry_run is True

    def test_tree_subcommands(self):
        parser = build_parser()
        for command in ("flatten", "prune", "datesort", "scan"):
            args = parser.parse_args([command, "/r"])
            assert args.command == command
            assert args.root == pathlib.Path("/r")

    def test_chunk_size_must_be_positive(self):
        parser = build_parser()
        assert parser.parse_args(["scan", "/r", "--chunk-size", "4096"]).chunk_size == 4096
        with pytest.raises(SystemExit):
            parser.parse_args(["scan", "/r", "--chunk-size", "0"])

    def test_no_progress_flag(self):
        parser = build_parser()
        args = parser.parse_args(["scan", "/r", "--no-progress"])
        assert args.progress is False

    def test_verbose_flag(self):
        parser = build_parser()
        args = parser.parse_args(["-v", "scan", "/r"])
        assert args.verbose is True

    def test_quiet_flag(self):
        parser = build_parser()
        args = parser.parse_args(["-q", "scan", "/r"])
        assert args.quiet is True

    def test_verbose_and_quiet_mutually_exclusive(self):
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["-v", "-q", "scan", "/r"])


class TestFormatSize:
    """Test human-readable sizes."""

    def test_units(self):
        assert _format_size(512) == "512 B"
        assert _format_size(2048) == "2.0 KB"
        assert _format_size(3 * 1024 ** 2) == "3.0 MB"
        assert _format_size(5 * 1024 ** 3) == "5.0 GB"


class TestMain:
    """Test main() entry point dispatch."""

    def test_configure_flag(self, monkeypatch):
        from foldercompare.cli import main
        from unittest.mock import patch
        monkeypatch.setattr("sys.argv", ["foldercompare", "--configure"])
        with patch("foldercompare.cli.create_config_interactive") as mock_configure:
            main()
        mock_configure.assert_called_once()

    def test_no_command_prints_help(self, capsys, monkeypatch):
        from foldercompare.cli import main
        monkeypatch.setattr("sys.argv", ["foldercompare"])
        main()
        captured = capsys.readouterr()
        assert "usage" in captured.out.lower()

    def test_scan_dispatches(self, sample_tree, tmp_path, monkeypatch, caplog):
        from foldercompare.cli import main
        monkeypatch.setattr("sys.argv", ["foldercompare", "scan", str(sample_tree), "--no-progress"])
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            main()
        assert "Scanning" in caplog.text
        assert "Found 3 file(s)" in caplog.text

    def test_config_applied(self, sample_tree, tmp_path, monkeypatch):
        from foldercompare.cli import main
        cfg_dir = tmp_path / "cfg" / "foldercompare"
        cfg_dir.mkdir(parents=True)
        (cfg_dir / "config.toml").write_text("dry_run = true\nprogress = false\n")
        monkeypatch.setattr("sys.argv", ["foldercompare", "dupes", str(sample_tree), "--delete"])
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        main()
        assert (sample_tree / "x.txt").exists()
        assert (sample_tree / "sub" / "y.txt").exists()

    def test_missing_folder_exits(self, tmp_path, monkeypatch, caplog):
        from foldercompare.cli import main
        monkeypatch.setattr(
            "sys.argv", ["foldercompare", "scan", str(tmp_path / "missing"), "--no-progress"],
        )
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        assert "Directory not found" in caplog.text


class TestCmdScan:
    """Test the scan subcommand."""

    def test_type_summary(self, tmp_path: pathlib.Path, caplog):
        (tmp_path / "a.jpg").write_bytes(b"jpeg")
        (tmp_path / "b.mp4").write_bytes(b"video")
        (tmp_path / "c.txt").write_bytes(b"text")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_scan(_args("scan", str(tmp_path)))
        assert "1 image" in caplog.text
        assert "1 video" in caplog.text
        assert "1 other" in caplog.text


class TestCmdDupes:
    """Test the dupes subcommand."""

    def test_finds_duplicates(self, tmp_path: pathlib.Path, caplog):
        content = b"duplicate jpeg content here"
        (tmp_path / "a.jpg").write_bytes(content)
        (tmp_path / "b.jpg").write_bytes(content)
        (tmp_path / "unique.jpg").write_bytes(b"unique content")

        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_dupes(_args("dupes", str(tmp_path)))

        assert "1 duplicate group" in caplog.text
        assert "a.jpg" in caplog.text
        assert "b.jpg" in caplog.text

    def test_empty_directory(self, tmp_path: pathlib.Path, caplog):
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_dupes(_args("dupes", str(tmp_path)))
        assert "No files found" in caplog.text

    def test_no_duplicates(self, tmp_path: pathlib.Path, caplog):
        (tmp_path / "a.jpg").write_bytes(b"unique 1")
        (tmp_path / "b.jpg").write_bytes(b"unique 2222")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_dupes(_args("dupes", str(tmp_path)))
        assert "No duplicates" in caplog.text

    def test_match_by_name(self, sample_tree: pathlib.Path, caplog):
        (sample_tree / "sub" / "z.txt").write_bytes(b"other bytes")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_dupes(_args("dupes", str(sample_tree), "--match", "name"))
        assert "1 duplicate group" in caplog.text
        assert "Group 1: z.txt" in caplog.text

    def test_delete_keeps_first(self, tmp_path: pathlib.Path, caplog):
        content = b"duplicate jpeg content here"
        first = tmp_path / "a.jpg"
        second = tmp_path / "b.jpg"
        third = tmp_path / "c.jpg"
        for f in (first, second, third):
            f.write_bytes(content)

        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_dupes(_args("dupes", str(tmp_path), "--delete"))

        assert first.exists(), "first file should be kept"
        assert not second.exists()
        assert not third.exists()
        assert "Keeping" in caplog.text
        assert "Deleted 2 file(s)" in caplog.text

    def test_dry_run_does_not_remove(self, tmp_path: pathlib.Path, caplog):
        content = b"duplicate jpeg content here"
        a = tmp_path / "a.jpg"
        b = tmp_path / "b.jpg"
        a.write_bytes(content)
        b.write_bytes(content)

        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_dupes(_args("dupes", str(tmp_path), "--delete", "--dry-run"))

        assert a.exists()
        assert b.exists(), "file should not be removed in a dry run"
        assert "[DRY RUN] Would delete 1 file(s)" in caplog.text

    def test_without_delete_does_not_remove(self, tmp_path: pathlib.Path):
        content = b"duplicate jpeg content here"
        a = tmp_path / "a.jpg"
        b = tmp_path / "b.jpg"
        a.write_bytes(content)
        b.write_bytes(content)
        cmd_dupes(_args("dupes", str(tmp_path)))
        assert a.exists()
        assert b.exists(), "file should not be removed without --delete"


class TestCmdCompare:
    """Test the compare subcommand."""

    def test_reports_common_files(self, folder_a, folder_b, caplog):
        (folder_a / "photo.jpg").write_bytes(b"same picture")
        (folder_b / "renamed.jpg").write_bytes(b"same picture")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_compare(_args("compare", str(folder_a), str(folder_b)))
        assert "1 duplicate group" in caplog.text
        assert "[A]" in caplog.text
        assert "[B]" in caplog.text

    def test_nothing_in_common(self, folder_a, folder_b, caplog):
        (folder_a / "one.txt").write_bytes(b"1")
        (folder_b / "two.txt").write_bytes(b"2")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_compare(_args("compare", str(folder_a), str(folder_b)))
        assert "No files in common" in caplog.text

    def test_delete_from_b(self, folder_a, folder_b):
        (folder_a / "photo.jpg").write_bytes(b"same picture")
        (folder_b / "renamed.jpg").write_bytes(b"same picture")
        (folder_b / "keep.jpg").write_bytes(b"only here")
        cmd_compare(_args("compare", str(folder_a), str(folder_b), "--delete-from", "B"))
        assert (folder_a / "photo.jpg").exists()
        assert not (folder_b / "renamed.jpg").exists()
        assert (folder_b / "keep.jpg").exists()


class TestCmdUnique:
    """Test the unique subcommand."""

    def test_lists_both_sides(self, folder_a, folder_b, caplog):
        (folder_a / "shared.txt").write_bytes(b"shared")
        (folder_b / "shared.txt").write_bytes(b"shared")
        (folder_a / "onlya.txt").write_bytes(b"a")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_unique(_args("unique", str(folder_a), str(folder_b)))
        assert "1 file(s) only in A" in caplog.text
        assert "0 file(s) only in B" in caplog.text
        assert "onlya.txt" in caplog.text

    def test_copy(self, folder_a, folder_b, caplog):
        (folder_a / "onlya.txt").write_bytes(b"a")
        (folder_b / "onlyb.txt").write_bytes(b"b")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_unique(_args("unique", str(folder_a), str(folder_b), "--copy"))
        assert (folder_b / "_extraA" / "onlya.txt").read_bytes() == b"a"
        assert (folder_a / "_extraB" / "onlyb.txt").read_bytes() == b"b"
        assert "Copied 1 of 1 file(s)" in caplog.text

    def test_copy_dry_run(self, folder_a, folder_b, caplog):
        (folder_a / "onlya.txt").write_bytes(b"a")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_unique(_args("unique", str(folder_a), str(folder_b), "--copy", "--dry-run"))
        assert not (folder_b / "_extraA").exists()
        assert "[DRY RUN] Would copy 1 file(s)" in caplog.text


class TestTreeCommands:
    """Test flatten, prune and datesort subcommands."""

    def test_flatten(self, sample_tree: pathlib.Path, caplog):
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_flatten(_args("flatten", str(sample_tree)))
        assert (sample_tree / "y.txt").exists()
        assert "Moved 1 file(s)" in caplog.text

    def test_flatten_reports_collisions(self, sample_tree: pathlib.Path, caplog):
        (sample_tree / "y.txt").write_bytes(b"taken")
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_flatten(_args("flatten", str(sample_tree)))
        assert "1 file(s) could not be moved" in caplog.text

    def test_prune(self, tmp_path: pathlib.Path, caplog):
        (tmp_path / "empty" / "nested").mkdir(parents=True)
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_prune(_args("prune", str(tmp_path)))
        assert "Removed 2 empty folder(s)" in caplog.text
        assert tmp_path.exists()

    def test_datesort(self, sample_tree: pathlib.Path, caplog):
        with caplog.at_level(logging.INFO, logger="foldercompare"):
            cmd_datesort(_args("datesort", str(sample_tree)))
        assert "Moved 3 of 3 file(s)" in caplog.text


class TestLoggingSetup:
    """Test logging configuration."""

    def test_default_level_is_info(self):
        from foldercompare.logging import configure_logging
        configure_logging()
        logger = logging.getLogger("foldercompare")
        assert logger.level == logging.INFO

    def test_verbose_sets_debug(self):
        from foldercompare.logging import configure_logging
        configure_logging(verbose=True)
        logger = logging.getLogger("foldercompare")
        assert logger.level == logging.DEBUG

    def test_quiet_sets_warning(self):
        from foldercompare.logging import configure_logging
        configure_logging(quiet=True)
        logger = logging.getLogger("foldercompare")
        assert logger.level == logging.WARNING

    def test_reconfigure_replaces_handler(self):
        from foldercompare.logging import configure_logging
        configure_logging()
        configure_logging(verbose=True)
        assert len(logging.getLogger("foldercompare").handlers) == 1
