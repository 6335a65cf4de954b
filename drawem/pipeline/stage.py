import logging
import subprocess
from pathlib import Path
from typing import Dict, List

from drawem.common.errors import ScriptError

LOGGER = logging.getLogger("DrawEM.pipeline")


class ScriptRunner:
    """
    Runs the Draw-EM sub-scripts found in ``$DRAWEMDIR/scripts``, from the subject data directory and with the
    environment prepared by DrawEMEnvironment. The first script that fails raises ScriptError.
    """
    def __init__(self, scripts_dir: Path, env: Dict[str, str], cwd: Path):
        self.scripts_dir = scripts_dir
        self.env = env
        self.cwd = cwd

    def command(self, script: str, *args) -> List[str]:
        return [str(self.scripts_dir.joinpath(script))] + [str(arg) for arg in args]

    def run(self, script: str, *args):
        command = self.command(script, *args)
        LOGGER.info(" ".join([script] + command[1:]))
        try:
            process = subprocess.run(command, cwd=str(self.cwd), env=self.env)
        except OSError as e:
            LOGGER.error("%s : %s", command[0], e)
            raise ScriptError(Path(command[0]), command[1:]) from e
        if process.returncode != 0:
            raise ScriptError(Path(command[0]), command[1:], returncode=process.returncode)
