"""
Tests for use cases — bulk packages and per-tool installs end to end,
with a fake runner in place of real commands.
"""

from pathlib import Path

import pytest

from devsetup.adapters.system import PlatformDetector, PrivilegeGuard, ShellSwitcher
from devsetup.core.config.loader import Settings
from devsetup.core.engine.interrupt import InterruptCoordinator, RunContext
from devsetup.core.steps.base import StepContext
from devsetup.core.use_cases.packages import install_packages
from devsetup.core.use_cases.runtime import Runtime, build_runtime
from devsetup.core.use_cases.tools import install_tools

USER = PrivilegeGuard(geteuid=lambda: 1000)
ROOT = PrivilegeGuard(geteuid=lambda: 0)


@pytest.fixture
def bin_dir(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    monkeypatch.setenv("PATH", str(path))
    return path


def _runtime(fake_runner, console, home: Path, settings: Settings | None = None) -> Runtime:
    settings = settings or Settings()
    context = RunContext()
    return Runtime(
        settings=settings,
        console=console,
        context=context,
        runner=fake_runner,
        step_ctx=StepContext(
            runner=fake_runner,
            console=console,
            home=home,
            local_bin=settings.local_bin_path(home),
        ),
        coordinator=InterruptCoordinator(context, console),
    )


def _detector(tmp_path: Path, distro: str) -> PlatformDetector:
    path = tmp_path / "os-release"
    path.write_text(f"ID={distro}\n")
    return PlatformDetector(system="linux", os_release=path)


def _switcher(fake_runner, tmp_path: Path, shell: str, which=lambda n: f"/usr/bin/{n}"):
    shells = tmp_path / "shells"
    shells.write_text("/bin/bash\n/usr/bin/zsh\n")
    return ShellSwitcher(
        fake_runner, environ={"SHELL": shell, "USER": "dev"}, which=which, shells_file=shells
    )


class TestBuildRuntime:
    def test_shares_one_context(self, console, home: Path):
        runtime = build_runtime(Settings(progress_interval=0.1), console=console, home=home)
        assert runtime.runner.context is runtime.context
        assert runtime.coordinator.context is runtime.context
        assert runtime.step_ctx.runner is runtime.runner

    def test_configured_local_bin(self, console, home: Path):
        runtime = build_runtime(Settings(local_bin="~/bin"), console=console, home=home)
        assert runtime.step_ctx.bin_dir == home / "bin"
        assert runtime.step_ctx.home == home
        assert runtime.runner.progress_interval == 0.1


# ── Bulk packages ────────────────────────────────────────────────────


class TestInstallPackages:
    def test_dry_run_runs_nothing(self, fake_runner, console, output, home, tmp_path):
        result = install_packages(
            "global",
            runtime=_runtime(fake_runner, console, home),
            dry_run=True,
            guard=USER,
            detector=_detector(tmp_path, "ubuntu"),
        )
        assert result.ok
        assert result.platform == "ubuntu"
        assert fake_runner.calls == []
        text = output.getvalue()
        assert "Packages to be installed on ubuntu:" in text
        assert "Shared packages: git wget curl" in text
        assert "sudo apt-get upgrade -y" in text

    def test_root_refused(self, fake_runner, console, output, home, tmp_path):
        result = install_packages(
            runtime=_runtime(fake_runner, console, home),
            guard=ROOT,
            detector=_detector(tmp_path, "ubuntu"),
        )
        assert result.exit_code == 1
        assert result.error == "Do not run as root"
        assert fake_runner.calls == []

    def test_unsupported_platform(self, fake_runner, console, home, tmp_path):
        result = install_packages(
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "gentoo"),
        )
        assert result.exit_code == 1
        assert "Unsupported OS: gentoo" in result.error

    def test_unknown_profile(self, fake_runner, console, home, tmp_path):
        result = install_packages(
            "huge",
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "arch"),
        )
        assert result.exit_code == 2
        assert "available: basic, global" in result.error

    def test_arch_bootstraps_yay_after_pacman(
        self, fake_runner, console, output, home, tmp_path, bin_dir
    ):
        result = install_packages(
            "global",
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "arch"),
            switcher=_switcher(fake_runner, tmp_path, "/usr/bin/zsh"),
        )
        assert result.ok, result.error
        prefixes = [inv.prefix for inv in fake_runner.calls]
        assert prefixes == ["pacman", "pacman", "yay", "yay", "yay"]
        assert fake_runner.commands[-1].startswith("yay -S --noconfirm --needed nodejs-tldr")
        assert result.channels.get("yay").status == "installed"
        assert not result.shell_changed
        assert "Installation completed successfully!" in output.getvalue()

    def test_first_failure_stops_plan(self, fake_runner, console, output, home, tmp_path):
        fake_runner.failures["pacman -Syu"] = 1
        result = install_packages(
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "arch"),
        )
        assert result.exit_code == 1
        assert len(fake_runner.calls) == 1
        assert result.failed_command.prefix == "pacman"
        assert result.to_dict()["failed_command"]["exit_code"] == 1
        assert "Package installation failed" in output.getvalue()
        assert "Installation completed successfully!" not in output.getvalue()

    def test_channel_failure_stops_plan(self, fake_runner, console, home, tmp_path, bin_dir):
        fake_runner.failures["makepkg"] = 1
        result = install_packages(
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "arch"),
        )
        assert result.error == "yay installation failed"
        assert not any(c.startswith("yay -S") for c in fake_runner.commands)

    def test_shell_change_requires_restart(self, fake_runner, console, output, home, tmp_path):
        result = install_packages(
            "basic",
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "ubuntu"),
            switcher=_switcher(fake_runner, tmp_path, "/bin/bash"),
        )
        assert result.shell_changed
        assert result.restart_required
        assert fake_runner.commands[-1] == "sudo chsh -s /usr/bin/zsh dev"
        assert "Please restart your terminal" in output.getvalue()

    def test_shell_failure_is_not_fatal(self, fake_runner, console, output, home, tmp_path):
        result = install_packages(
            "basic",
            runtime=_runtime(fake_runner, console, home),
            guard=USER,
            detector=_detector(tmp_path, "ubuntu"),
            switcher=_switcher(fake_runner, tmp_path, "/bin/bash", which=lambda n: None),
        )
        assert result.ok
        assert not result.shell_changed
        assert "Could not change shell to zsh" in output.getvalue()


# ── Per-tool installs ────────────────────────────────────────────────


class TestInstallTools:
    def test_single_tool(self, fake_runner, console, output, home):
        result = install_tools("zoxide", runtime=_runtime(fake_runner, console, home), guard=USER)
        assert result.ok
        assert result.exit_code == 0
        assert [r.step for r in result.report.receipts] == ["zoxide"]
        assert (home / ".local" / "bin").is_dir()
        text = output.getvalue()
        assert "Starting local package installation" in text
        assert "Creating directory:" in text

    def test_unknown_tool(self, fake_runner, console, output, home):
        result = install_tools("nope", runtime=_runtime(fake_runner, console, home), guard=USER)
        assert result.exit_code == 1
        assert "[ERROR] Unknown package: nope" in output.getvalue()
        assert fake_runner.calls == []

    def test_root_refused(self, fake_runner, console, output, home):
        result = install_tools(runtime=_runtime(fake_runner, console, home), guard=ROOT)
        assert result.exit_code == 1
        assert result.error == "Do not run as root"
        assert not (home / ".local" / "bin").exists()

    def test_default_guard_message(self, fake_runner, console, home, monkeypatch):
        monkeypatch.setattr("devsetup.adapters.system.privilege.os.geteuid", lambda: 0)
        result = install_tools(runtime=_runtime(fake_runner, console, home))
        assert result.error == "Do not run as root - packages install to home directory"

    def test_bulk_reports_partial_failure(self, fake_runner, console, home, bin_dir):
        # No vim on PATH: vim-plugins fails, the others still run
        result = install_tools(runtime=_runtime(fake_runner, console, home), guard=USER)
        assert result.exit_code == 1
        assert result.report.failed == {"vim-plugins"}
        assert result.report.total == 5

    def test_bulk_honours_skip_steps(self, fake_runner, console, home, bin_dir):
        settings = Settings(skip_steps=["vim-plugins"])
        result = install_tools(runtime=_runtime(fake_runner, console, home, settings), guard=USER)
        assert result.exit_code == 0
        assert "vim-plugins" not in {r.step for r in result.report.receipts}

    def test_configured_local_bin_is_used_by_tools(self, fake_runner, console, output, home):
        settings = Settings(local_bin="~/bin")
        runtime = _runtime(fake_runner, console, home, settings)

        result = install_tools("zoxide", runtime=runtime, guard=USER)
        assert result.ok
        assert (home / "bin").is_dir()
        assert not (home / ".local").exists()
        assert f"--bin-dir {home / 'bin'}" in fake_runner.commands[0]

        (home / "bin" / "zoxide").write_text("")
        result = install_tools("zoxide", runtime=runtime, guard=USER)
        assert result.report.get("zoxide").status == "present"
        assert len(fake_runner.calls) == 1
