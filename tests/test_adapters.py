"""
Tests for the command runner and the concrete adapters.

``subprocess.run`` is patched at the runner; assertions are on the
command lines each adapter builds.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from devbootstrap.adapters.android.sdkmanager import SdkManagerAdapter, sdkmanager_candidates
from devbootstrap.adapters.languages.dart import DartAdapter
from devbootstrap.adapters.languages.flutter import FlutterAdapter, FvmAdapter
from devbootstrap.adapters.mock import make_executable
from devbootstrap.adapters.packages.apt import AptAdapter
from devbootstrap.adapters.packages.choco import ChocoAdapter
from devbootstrap.adapters.packages.pacman import PacmanAdapter
from devbootstrap.adapters.registry import build_package_manager, build_toolbox
from devbootstrap.adapters.shell.command import CommandRunner
from devbootstrap.adapters.shell.swap import LinuxSwapAdapter, parse_swap_total
from devbootstrap.adapters.signing.keytool import KeytoolAdapter
from devbootstrap.adapters.vcs.git import GitAdapter, parse_agent_output
from devbootstrap.core.models.environment import EnvironmentState
from devbootstrap.core.models.toolchain import KeystoreSettings, PackageRepository

RUN = "devbootstrap.adapters.shell.command.subprocess.run"


def _done(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def runner(tmp_path: Path) -> CommandRunner:
    return CommandRunner(EnvironmentState(variables={"PATH": str(tmp_path / "empty")}, pathsep=":"))


@pytest.fixture(autouse=True)
def as_root():
    """Run adapters as if already root so no sudo prefix is added."""
    with patch("devbootstrap.adapters.shell.command.os.geteuid", return_value=0, create=True):
        yield


def _argv(mock_run, call: int = -1) -> list[str]:
    return list(mock_run.call_args_list[call].args[0])


class TestCommandRunner:
    def test_success_receipt(self, runner):
        with patch(RUN, return_value=_done(0, "hello\n")) as m:
            r = runner.run(["echo", "hello"], tool="t", operation="op")
        assert r.ok
        assert r.output == "hello"
        assert r.return_code == 0
        assert m.call_args.kwargs["env"]["PATH"] == runner.state.path

    def test_failure_receipt(self, runner):
        with patch(RUN, return_value=_done(2, "", "boom")):
            r = runner.run(["false"], tool="t", operation="op")
        assert r.failed
        assert r.error == "boom"
        assert r.return_code == 2

    def test_missing_executable(self, runner):
        with patch(RUN, side_effect=FileNotFoundError()):
            r = runner.run(["no-such-tool"], tool="t", operation="op")
        assert r.failed
        assert r.metadata["not_found"] is True

    def test_resolves_against_state_path(self, tmp_path: Path):
        exe = make_executable(tmp_path / "bin", "fvm")
        runner = CommandRunner(EnvironmentState(variables={"PATH": str(tmp_path / "bin")}, pathsep=":"))
        with patch(RUN, return_value=_done()) as m:
            runner.run(["fvm", "--version"], tool="fvm", operation="version")
        assert _argv(m)[0] == str(exe)

    def test_sudo_prefix_when_not_root(self, runner):
        with patch("devbootstrap.adapters.shell.command.os.geteuid", return_value=1000, create=True):
            with patch(RUN, return_value=_done()) as m:
                runner.run(["apt-get", "update"], tool="apt", operation="update", needs_sudo=True)
        assert _argv(m)[:2] == ["sudo", "apt-get"]

    def test_input_and_overrides(self, runner):
        with patch(RUN, return_value=_done()) as m:
            runner.run(["cat"], tool="t", operation="op", input_text="y\n", env_overrides={"X": "1"})
        assert m.call_args.kwargs["input"] == "y\n"
        assert m.call_args.kwargs["env"]["X"] == "1"

    def test_streaming_does_not_capture(self, runner):
        with patch(RUN, return_value=_done()) as m:
            runner.run(["git", "clone"], tool="git", operation="clone", capture=False)
        assert "capture_output" not in m.call_args.kwargs


class TestPackageAdapters:
    def test_apt_updates_then_installs(self, runner):
        with patch(RUN, return_value=_done()) as m:
            AptAdapter(runner).install(["git", "curl"])
        assert _argv(m, 0) == ["apt-get", "update"]
        assert _argv(m, 1) == ["apt-get", "install", "-y", "git", "curl"]

    def test_apt_stops_when_update_fails(self, runner):
        with patch(RUN, return_value=_done(100, "", "lock held")) as m:
            r = AptAdapter(runner).install(["git"])
        assert r.failed
        assert m.call_count == 1

    def test_apt_is_installed(self, runner):
        with patch(RUN, return_value=_done(0, "install ok installed")):
            assert AptAdapter(runner).is_installed("git") is True
        with patch(RUN, return_value=_done(1, "", "no packages found")):
            assert AptAdapter(runner).is_installed("git") is False

    def test_apt_repository_added_once(self, runner, tmp_path: Path):
        sources = tmp_path / "sources.list.d"
        sources.mkdir()
        repo = PackageRepository(
            name="dart_stable",
            key_url="https://dl-ssl.google.com/linux/linux_signing_key.pub",
            keyring="/usr/share/keyrings/dart.gpg",
            source="deb [signed-by=/usr/share/keyrings/dart.gpg] https://example/debian stable main",
        )
        apt = AptAdapter(runner, sources_dir=sources)
        with patch(RUN, return_value=_done()) as m:
            r = apt.prepare_repositories([repo])
        assert r.ok
        assert r.metadata["added"] == ["dart_stable"]
        assert "gpg --dearmor" in _argv(m, 0)[2]
        assert _argv(m, 1) == ["tee", str(sources / "dart_stable.list")]
        assert m.call_args_list[1].kwargs["input"].startswith("deb [signed-by=")

        (sources / "dart_stable.list").write_text("deb ...")
        with patch(RUN, return_value=_done()) as m:
            assert apt.prepare_repositories([repo]).status == "skipped"
        m.assert_not_called()

    def test_pacman_install(self, runner):
        with patch(RUN, return_value=_done()) as m:
            PacmanAdapter(runner).install(["git", "jdk17-openjdk"])
        assert _argv(m) == ["pacman", "-Syu", "--noconfirm", "--needed", "git", "jdk17-openjdk"]

    def test_pacman_is_installed(self, runner):
        with patch(RUN, return_value=_done(1, "", "package 'x' was not found")):
            assert PacmanAdapter(runner).is_installed("x") is False

    def test_choco_uses_entry_point_before_path(self, runner, tmp_path: Path):
        root = tmp_path / "chocolatey"
        entry = make_executable(root / "bin", "choco.exe")
        choco = ChocoAdapter(runner, install_root=root, entry_point=entry, bootstrap_url="https://x/install.ps1")
        with patch(RUN, return_value=_done()) as m:
            choco.install(["git", "temurin17"])
        assert _argv(m) == [str(entry), "install", "-y", "--no-progress", "git", "temurin17"]

    def test_choco_is_installed(self, runner, tmp_path: Path):
        choco = ChocoAdapter(
            runner,
            install_root=tmp_path,
            entry_point=tmp_path / "bin" / "choco.exe",
            bootstrap_url="https://x/install.ps1",
        )
        with patch(RUN, return_value=_done(0, "git|2.45.1\n")):
            assert choco.is_installed("git") is True
        with patch(RUN, return_value=_done(0, "")):
            assert choco.is_installed("git") is False

    def test_choco_bootstrap_runs_install_script(self, runner, tmp_path: Path):
        choco = ChocoAdapter(
            runner,
            install_root=tmp_path,
            entry_point=tmp_path / "bin" / "choco.exe",
            bootstrap_url="https://community.chocolatey.org/install.ps1",
        )
        with patch(RUN, return_value=_done()) as m:
            choco.bootstrap()
        argv = _argv(m)
        assert argv[0] == "powershell"
        assert "https://community.chocolatey.org/install.ps1" in argv[-1]


class TestGitAdapter:
    def test_parse_agent_output(self):
        out = (
            "SSH_AUTH_SOCK=/tmp/ssh-abc/agent.123; export SSH_AUTH_SOCK;\n"
            "SSH_AGENT_PID=124; export SSH_AGENT_PID;\n"
            "echo Agent pid 124;\n"
        )
        assert parse_agent_output(out) == {
            "SSH_AUTH_SOCK": "/tmp/ssh-abc/agent.123",
            "SSH_AGENT_PID": "124",
        }

    def test_clone(self, runner, tmp_path: Path):
        with patch(RUN, return_value=_done()) as m:
            GitAdapter(runner).clone("git@github.com:a/b.git", tmp_path / "b")
        assert _argv(m) == ["git", "clone", "git@github.com:a/b.git", str(tmp_path / "b")]

    def test_agent_not_running_without_socket(self, runner):
        with patch(RUN) as m:
            assert GitAdapter(runner).agent_running() is False
        m.assert_not_called()

    def test_agent_running_with_empty_agent(self, runner):
        runner.state.set("SSH_AUTH_SOCK", "/tmp/agent.sock")
        with patch(RUN, return_value=_done(1, "The agent has no identities.")):
            assert GitAdapter(runner).agent_running() is True

    def test_start_agent(self, runner):
        out = "SSH_AUTH_SOCK=/tmp/s/agent.1; export SSH_AUTH_SOCK;\nSSH_AGENT_PID=9; export SSH_AGENT_PID;\n"
        with patch(RUN, return_value=_done(0, out)):
            env = GitAdapter(runner).start_agent()
        assert env["SSH_AUTH_SOCK"] == "/tmp/s/agent.1"

    def test_start_agent_failure(self, runner):
        with patch(RUN, return_value=_done(1, "", "cannot bind")):
            assert GitAdapter(runner).start_agent() is None

    def test_windows_agent_service(self, runner):
        with patch(RUN, return_value=_done()) as m:
            assert GitAdapter(runner, windows=True).start_agent() == {}
        assert "Start-Service ssh-agent" in _argv(m)[-1]


class TestSdkAdapters:
    def test_dart_version(self, runner):
        with patch(RUN, return_value=_done(0, "Dart SDK version: 3.5.0 (stable) on linux_x64")):
            assert DartAdapter(runner).version() == "3.5.0"

    def test_dart_activate(self, runner):
        with patch(RUN, return_value=_done()) as m:
            DartAdapter(runner).activate_global("fvm")
        assert _argv(m) == ["dart", "pub", "global", "activate", "fvm"]

    def test_fvm_runs_in_project(self, runner, tmp_path: Path):
        with patch(RUN, return_value=_done()) as m:
            FvmAdapter(runner).install("3.29.0", tmp_path)
            FvmAdapter(runner).use("3.29.0", tmp_path)
        assert _argv(m, 0) == ["fvm", "install", "3.29.0"]
        assert _argv(m, 1) == ["fvm", "use", "3.29.0", "--force"]
        assert m.call_args_list[1].kwargs["cwd"] == str(tmp_path)

    def test_flutter_through_fvm(self, runner, tmp_path: Path):
        flutter = FlutterAdapter(runner, tmp_path)
        with patch(RUN, return_value=_done()) as m:
            flutter.configure(Path("/sdk"))
            flutter.fetch_dependencies()
            flutter.build("debug")
            flutter.self_diagnose()
        assert [_argv(m, i)[2:] for i in range(4)] == [
            ["config", "--android-sdk", str(Path("/sdk"))],
            ["pub", "get"],
            ["build", "apk", "--debug"],
            ["doctor"],
        ]

    def test_sdkmanager_license_answers_bounded(self, runner, tmp_path: Path):
        make_executable(tmp_path / "cmdline-tools" / "latest" / "bin", "sdkmanager")
        adapter = SdkManagerAdapter(runner, tmp_path)
        with patch(RUN, return_value=_done()) as m:
            adapter.accept_licenses(30)
        assert m.call_args.kwargs["input"] == "y\n" * 30
        assert _argv(m)[1:] == [f"--sdk_root={tmp_path}", "--licenses"]

    def test_sdkmanager_nested_layout(self, runner, tmp_path: Path):
        nested = make_executable(tmp_path / "cmdline-tools" / "latest" / "cmdline-tools" / "bin", "sdkmanager")
        adapter = SdkManagerAdapter(runner, tmp_path)
        assert adapter.is_available()
        with patch(RUN, return_value=_done()) as m:
            adapter.install_components(["platform-tools"])
        assert _argv(m)[0] == str(nested)

    def test_sdkmanager_candidates_windows(self, tmp_path: Path):
        names = {p.name for p in sdkmanager_candidates(tmp_path, windows=True)}
        assert names == {"sdkmanager.bat"}

    def test_keytool_args(self, runner, tmp_path: Path):
        with patch(RUN, return_value=_done()) as m:
            KeytoolAdapter(runner).generate(tmp_path / "debug.keystore", KeystoreSettings(path="~/x"))
        argv = _argv(m)
        assert argv[:3] == ["keytool", "-genkey", "-v"]
        assert argv[argv.index("-alias") + 1] == "androiddebugkey"
        assert argv[argv.index("-storepass") + 1] == "android"
        assert argv[argv.index("-validity") + 1] == "10000"
        assert argv[argv.index("-dname") + 1] == "CN=Android Debug,O=Android,C=US"


class TestSwapAdapter:
    def test_parse_swap_total(self):
        meminfo = "MemTotal:  4000000 kB\nSwapTotal:  1048572 kB\nSwapFree: 1048572 kB\n"
        assert parse_swap_total(meminfo) == 1048572
        assert parse_swap_total("MemTotal: 1 kB\n") == 0

    def test_total_from_file(self, runner, tmp_path: Path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text("SwapTotal:  2097148 kB\n")
        assert LinuxSwapAdapter(runner, meminfo).total_swap_kib() == 2097148

    def test_create_sequence(self, runner):
        with patch(RUN, return_value=_done()) as m:
            LinuxSwapAdapter(runner).create_swapfile("/myswap", 2048)
        assert [_argv(m, i)[0] for i in range(4)] == ["dd", "chmod", "mkswap", "swapon"]
        assert "/etc/fstab" in _argv(m, 4)[-1]

    def test_create_stops_on_failure(self, runner):
        with patch(RUN, return_value=_done(1, "", "No space left on device")) as m:
            r = LinuxSwapAdapter(runner).create_swapfile("/myswap", 2048)
        assert r.failed
        assert m.call_count == 1


class TestRegistry:
    def test_package_manager_per_host(self, runner, toolchain, tmp_path: Path):
        assert isinstance(build_package_manager("debian", runner, toolchain, tmp_path), AptAdapter)
        assert isinstance(build_package_manager("arch", runner, toolchain, tmp_path), PacmanAdapter)

    def test_windows_package_manager(self, toolchain, tmp_path: Path):
        # Windows hands the environment over with upper-cased names.
        state = EnvironmentState(
            variables={"PATH": str(tmp_path / "empty"), "PROGRAMDATA": str(tmp_path / "ProgramData")},
            pathsep=";",
        )
        choco = build_package_manager("windows", CommandRunner(state), toolchain, tmp_path)
        assert isinstance(choco, ChocoAdapter)
        assert choco.install_root() == tmp_path / "ProgramData" / "chocolatey"
        assert choco.entry_point() == tmp_path / "ProgramData" / "chocolatey" / "bin" / "choco.exe"
        assert choco.entry_point().is_absolute()

    def test_choco_uses_entry_point_before_path_catches_up(self, toolchain, tmp_path: Path):
        state = EnvironmentState(
            variables={"PATH": str(tmp_path / "empty"), "PROGRAMDATA": str(tmp_path / "ProgramData")},
            pathsep=";",
        )
        choco = build_package_manager("windows", CommandRunner(state), toolchain, tmp_path)
        make_executable(choco.entry_point().parent, "choco.exe")
        with patch(RUN, return_value=_done()) as m:
            choco.install(["git"])
        assert _argv(m)[0] == str(choco.entry_point())

    def test_toolbox_linux_has_swap(self, runner, toolchain, tmp_path: Path):
        box = build_toolbox("debian", runner, toolchain, sdk_root=tmp_path, project_dir=tmp_path, home=tmp_path)
        assert box.swap is not None
        assert set(box.status()) >= {"apt", "git", "dart", "fvm", "sdkmanager", "flutter", "keytool", "swap"}

    def test_toolbox_windows_has_no_swap(self, runner, toolchain, tmp_path: Path):
        box = build_toolbox("windows", runner, toolchain, sdk_root=tmp_path, project_dir=tmp_path, home=tmp_path)
        assert box.swap is None
