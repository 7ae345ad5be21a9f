"""
Per-tool installers for tools kept under the user's home directory.

Each tool installs from upstream (git or the project's install
script) rather than the system package manager, to get recent
versions without root.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from devsetup.core.errors import StepError
from devsetup.core.models.invocation import ExecutionOutcome
from devsetup.core.steps.base import Step, StepContext

logger = logging.getLogger(__name__)

FZF_REPO = "https://github.com/junegunn/fzf.git"
VUNDLE_REPO = "https://github.com/VundleVim/Vundle.vim.git"
OH_MY_POSH_INSTALLER = "https://ohmyposh.dev/install.sh"
PROTO_INSTALLER = "https://moonrepo.dev/install/proto.sh"
ZOXIDE_INSTALLER = "https://raw.githubusercontent.com/ajeetdsouza/zoxide/main/install.sh"

PROTO_TOOLS = ("python", "uv", "node", "pnpm")


class FzfStep(Step):
    """fzf fuzzy finder, cloned to ``~/.fzf``."""

    name = "fzf"
    description = "fuzzy finder (git clone to ~/.fzf)"

    def is_installed(self, ctx: StepContext) -> bool:
        return ctx.path(".fzf/bin/fzf").is_file() and ctx.which("fzf") is not None

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        target = str(ctx.path(".fzf"))
        ctx.console.info("Installing fzf to ~/.fzf")
        return ctx.run_chain(
            ctx.command("fzf", "rm", "-rf", target),
            ctx.command("fzf", "git", "clone", "--depth", "1", FZF_REPO, target),
            # The installer asks three questions; answer yes to each
            ctx.command(
                "fzf",
                f"{target}/install",
                "--xdg", "--no-update-rc", "--no-bash", "--no-zsh", "--no-fish",
                stdin="y\ny\ny\n",
            ),
        )


class VimPluginsStep(Step):
    """Vim plugins managed by Vundle.

    There is no reliable marker for "plugins up to date", so this
    step always runs and re-syncs the plugin set.
    """

    name = "vim-plugins"
    description = "vim plugins via Vundle (always re-synced)"

    def is_installed(self, ctx: StepContext) -> bool:
        return False

    def _vundle_present(self, vundle: Path) -> bool:
        if not (vundle / ".git").is_dir():
            return False
        try:
            r = subprocess.run(
                ["git", "-C", str(vundle), "remote", "get-url", "origin"],
                capture_output=True, text=True, timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Cannot inspect %s: %s", vundle, e)
            return False
        return r.returncode == 0 and "github.com/VundleVim/Vundle.vim" in r.stdout

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        ctx.console.info("Setting up vim plugins with Vundle")
        if ctx.which("vim") is None:
            ctx.console.warn("vim not found, skipping plugin installation")
            raise StepError("vim not found")

        vundle = ctx.path(".vim/bundle/Vundle.vim")
        if self._vundle_present(vundle):
            ctx.console.info("Vundle already installed")
        else:
            ctx.console.info("Installing Vundle")
            outcome = ctx.run_chain(
                ctx.command("vundle", "mkdir", "-p", str(vundle.parent)),
                ctx.command("vundle", "rm", "-rf", str(vundle)),
                ctx.command("vundle", "git", "clone", VUNDLE_REPO, str(vundle)),
            )
            if outcome is not None and outcome.failed:
                return outcome

        ctx.console.info("Installing vim plugins")
        return ctx.run(ctx.command("vim", "vim", "+PluginInstall", "+qall"))


class OhMyPoshStep(Step):
    """oh-my-posh prompt engine in the per-user bin directory."""

    name = "oh-my-posh"
    description = "prompt theme engine (~/.local/bin/oh-my-posh)"

    def _binary(self, ctx: StepContext) -> Path:
        return ctx.bin_dir / "oh-my-posh"

    def is_installed(self, ctx: StepContext) -> bool:
        return self._binary(ctx).is_file()

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        ctx.console.info("Installing/updating oh-my-posh")
        binary = self._binary(ctx)
        if binary.is_file():
            return ctx.run(ctx.command("oh-my-posh", str(binary), "upgrade"))

        bin_dir = shlex.quote(str(binary.parent))
        themes = shlex.quote(str(ctx.path(".poshthemes")))
        return ctx.run(
            ctx.script(
                "oh-my-posh",
                f"curl -s {OH_MY_POSH_INSTALLER} | bash -s -- -d {bin_dir} -t {themes}",
            )
        )


class ProtoStep(Step):
    """proto toolchain manager, plus the toolchains it manages."""

    name = "proto"
    description = f"tool version manager (~/.proto), then {' '.join(PROTO_TOOLS)}"

    def _binary(self, ctx: StepContext) -> Path:
        return ctx.path(".proto/bin/proto")

    def is_installed(self, ctx: StepContext) -> bool:
        return self._binary(ctx).is_file()

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        ctx.console.info("Installing/updating proto")
        binary = self._binary(ctx)
        if not binary.is_file():
            outcome = ctx.run(
                ctx.script(
                    "proto",
                    f"bash <(curl -fsSL {PROTO_INSTALLER}) --no-profile --yes",
                )
            )
            if outcome.failed:
                return outcome

        return ctx.run_chain(
            ctx.command("proto", str(binary), "upgrade"),
            ctx.command("proto", str(binary), "install", *PROTO_TOOLS),
        )


class ZoxideStep(Step):
    """zoxide smart ``cd`` in the per-user bin directory."""

    name = "zoxide"
    description = "smart cd command (~/.local/bin/zoxide)"

    def is_installed(self, ctx: StepContext) -> bool:
        return (ctx.bin_dir / "zoxide").is_file()

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        ctx.console.info("Installing zoxide locally")
        bin_dir = shlex.quote(str(ctx.bin_dir))
        return ctx.run(
            ctx.script(
                "zoxide",
                f"curl -sSfL {ZOXIDE_INSTALLER} | sh -s -- --bin-dir {bin_dir}",
            )
        )
