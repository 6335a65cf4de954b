import os
import shlex
import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from drawem.common.constants import ROOT_DIR
from drawem.common.config import DRAWEM_CONF, get_conf
from drawem.common.errors import EnvironmentConfigError

LOGGER = logging.getLogger("DrawEM.environment")

# Variables bash maintains itself, not forwarded to the sub-scripts
SHELL_INTERNALS = ("_", "PWD", "OLDPWD", "SHLVL")


def resolve_drawem_dir(environ: Mapping[str, str] = None) -> Path:
    """ Installation directory of Draw-EM

    Args:
        environ (optional): environment to read DRAWEMDIR from, defaults to os.environ

    Returns:
        DRAWEMDIR if it is set, otherwise the directory containing the drawem package
    """
    if environ is None:
        environ = os.environ
    drawem_dir = environ.get("DRAWEMDIR")
    if drawem_dir:
        if not Path(drawem_dir).is_dir():
            raise EnvironmentConfigError("DRAWEMDIR environment variable invalid!")
        return Path(drawem_dir).absolute()
    return ROOT_DIR


def source_shell_files(sources: Sequence[Tuple[Path, Sequence[str]]], environ: Mapping[str, str]) -> Dict[str, str]:
    """ Source bash files one after the other and return the resulting environment

    Every variable the files assign is exported (``set -a``). Anything the files print is sent to stderr.

    Args:
        sources: (path, arguments) pairs, sourced in order
        environ: environment the shell starts from

    Returns:
        environment variables after sourcing
    """
    commands = ["set -a"]
    for path, args in sources:
        if not path.exists():
            raise EnvironmentConfigError(f"{path.name} does not exist at {path}")
        source = " ".join([".", shlex.quote(str(path))] + [shlex.quote(str(arg)) for arg in args])
        commands.append("{ " + source + "; } 1>&2")
    commands.append("env -0")
    process = subprocess.run(
        ["bash", "-c", "\n".join(commands)], env=dict(environ), stdout=subprocess.PIPE, stderr=subprocess.PIPE,
    )
    if process.returncode != 0:
        names = ", ".join(str(path) for path, _ in sources)
        raise EnvironmentConfigError(
            f"Sourcing {names} failed with exit code {process.returncode}:\n"
            f"{process.stderr.decode(errors='replace').strip()}"
        )
    variables = {}
    for entry in process.stdout.decode(errors="replace").split("\0"):
        key, sep, value = entry.partition("=")
        if sep and key not in SHELL_INTERNALS:
            variables[key] = value
    return variables


class DrawEMEnvironment:
    """
    Draw-EM installation (DRAWEMDIR) together with the environment its sub-scripts expect.

    The environment is what bash holds after sourcing ``parameters/configuration.sh`` and, once the atlases are
    known, ``parameters/set_atlas.sh <tissue_atlas> <atlas>``.
    """
    def __init__(self, drawem_dir: Path, variables: Dict[str, str]):
        self.drawem_dir = drawem_dir
        self.variables = variables

    @classmethod
    def load(cls, environ: Mapping[str, str] = None) -> "DrawEMEnvironment":
        if environ is None:
            environ = os.environ
        drawem_dir = resolve_drawem_dir(environ)
        environ = dict(environ)
        environ["DRAWEMDIR"] = str(drawem_dir)
        configuration_path = drawem_dir.joinpath(get_conf(DRAWEM_CONF, group="parameters", key="configuration"))
        LOGGER.debug("Sourcing %s", configuration_path)
        variables = source_shell_files([(configuration_path, [])], environ)
        return cls(drawem_dir, variables)

    def with_atlas(self, tissue_atlas: str, atlas: str) -> "DrawEMEnvironment":
        """Environment extended with the atlas configuration of set_atlas.sh"""
        LOGGER.debug("Sourcing %s %s %s", self.set_atlas_path, tissue_atlas, atlas)
        variables = source_shell_files([(self.set_atlas_path, [tissue_atlas, atlas])], self.variables)
        return DrawEMEnvironment(self.drawem_dir, variables)

    @property
    def set_atlas_path(self) -> Path:
        return self.drawem_dir.joinpath(get_conf(DRAWEM_CONF, group="parameters", key="set_atlas"))

    @property
    def scripts_dir(self) -> Path:
        return self.drawem_dir.joinpath(get_conf(DRAWEM_CONF, group="parameters", key="scripts_dir"))

    @property
    def available_atlases(self) -> List[str]:
        return self.variables.get("AVAILABLE_ATLASES", "").split()

    @property
    def available_tissue_atlases(self) -> List[str]:
        return self.variables.get("AVAILABLE_TISSUE_ATLASES", "").split()

    @property
    def version(self) -> str:
        version_path = self.drawem_dir.joinpath(get_conf(DRAWEM_CONF, group="parameters", key="version_file"))
        if not version_path.exists():
            return "unknown"
        return version_path.read_text().strip()

    @property
    def git_revision(self) -> Optional[str]:
        """HEAD of the DRAWEMDIR checkout, None if it is not a git repository or git is missing"""
        try:
            process = subprocess.run(
                ["git", "-C", str(self.drawem_dir), "rev-parse", "HEAD"],
                stdout=subprocess.PIPE, stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            LOGGER.debug("git not available: %s", e)
            return None
        if process.returncode != 0:
            return None
        return process.stdout.decode().strip()
