"""
Tests for corruption detection and recovery repair.
"""

from pathlib import Path
from unittest.mock import patch

from devbootstrap.adapters.mock import make_executable
from devbootstrap.core.errors import CorruptInstall
from devbootstrap.core.services.preconditions import InstallState, directory_state, marker_present
from devbootstrap.core.services.repair import find_corruption, repair


class TestDirectoryState:
    def test_absent(self, tmp_path: Path):
        target = tmp_path / "sdk"
        assert directory_state(target, [target / "marker"]) == InstallState.ABSENT

    def test_corrupted(self, tmp_path: Path):
        target = tmp_path / "sdk"
        target.mkdir()
        assert directory_state(target, [target / "marker"]) == InstallState.CORRUPTED

    def test_satisfied(self, tmp_path: Path):
        target = tmp_path / "sdk"
        target.mkdir()
        (target / "marker").write_text("")
        assert directory_state(target, [target / "marker"]) == InstallState.SATISFIED

    def test_all_markers_required(self, tmp_path: Path):
        target = tmp_path / "sdk"
        target.mkdir()
        (target / "a").write_text("")
        assert directory_state(target, [target / "a", target / "b"]) == InstallState.CORRUPTED

    def test_executable_marker(self, tmp_path: Path):
        plain = tmp_path / "sdkmanager"
        plain.write_text("")
        plain.chmod(0o644)
        assert marker_present(plain) is True
        assert marker_present(plain, executable=True) is False
        assert marker_present(make_executable(tmp_path / "bin", "sdkmanager"), executable=True)


class TestFindCorruption:
    def test_partial_directory_is_corrupt_install(self, tmp_path: Path):
        target = tmp_path / "cmdline-tools"
        (target / "latest").mkdir(parents=True)
        marker = target / "latest" / "bin" / "sdkmanager"

        corruption = find_corruption(target, marker)

        assert isinstance(corruption, CorruptInstall)
        assert corruption.recoverable
        assert "sdkmanager" in corruption.message
        assert corruption.details == [str(marker)]

    def test_missing_or_complete_is_clean(self, tmp_path: Path):
        target = tmp_path / "sdk"
        assert find_corruption(target, target / "marker") is None
        target.mkdir()
        (target / "marker").write_text("")
        assert find_corruption(target, target / "marker") is None


class TestRepair:
    def test_marker_less_directory_removed_and_reinstallable(self, tmp_path: Path):
        target = tmp_path / "chocolatey"
        (target / "lib" / "partial").mkdir(parents=True)
        (target / "lib" / "partial" / "file.nupkg").write_text("x")
        marker = target / "bin" / "choco.exe"

        assert repair(target, marker) is True
        assert not target.exists()

        make_executable(marker.parent, marker.name)
        assert directory_state(target, [marker]) == InstallState.SATISFIED

    def test_missing_directory_untouched(self, tmp_path: Path):
        target = tmp_path / "nothing-here"
        with patch("devbootstrap.core.services.repair.shutil.rmtree") as rmtree:
            assert repair(target, target / "marker") is False
        rmtree.assert_not_called()

    def test_complete_install_untouched(self, tmp_path: Path):
        target = tmp_path / "sdk"
        target.mkdir()
        (target / "marker").write_text("")
        with patch("devbootstrap.core.services.repair.shutil.rmtree") as rmtree:
            assert repair(target, target / "marker") is False
        rmtree.assert_not_called()
        assert target.exists()

    def test_read_only_files_removed(self, tmp_path: Path):
        target = tmp_path / "sdk"
        target.mkdir()
        locked = target / "locked.txt"
        locked.write_text("x")
        locked.chmod(0o444)

        assert repair(target, target / "marker") is True
        assert not target.exists()

    def test_removal_failure_is_not_fatal(self, tmp_path: Path, caplog):
        target = tmp_path / "sdk"
        target.mkdir()
        with patch(
            "devbootstrap.core.services.repair.shutil.rmtree",
            side_effect=PermissionError("file in use"),
        ):
            assert repair(target, target / "marker") is False
        assert "Could not fully remove" in caplog.text

    def test_stray_file_removed(self, tmp_path: Path):
        target = tmp_path / "ezpartyph-flutter"
        target.write_text("not a directory")
        assert repair(target, target / ".git") is True
        assert not target.exists()
