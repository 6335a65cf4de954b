from pathlib import Path
from typing import Sequence


class DrawEMError(Exception):
    """Base class for errors that abort a Draw-EM run"""


class EnvironmentConfigError(DrawEMError):
    """DRAWEMDIR or one of its parameter files is unusable"""


class InvalidInputError(DrawEMError):
    pass


class ScriptError(DrawEMError):
    """
    A Draw-EM sub-script could not be executed or exited with a non-zero status.

    Args:
        script: path of the sub-script
        args: arguments the script was called with
        returncode: exit status, None if the script could not be started
    """
    def __init__(self, script: Path, args: Sequence[str] = (), returncode: int = None):
        self.script = Path(script)
        self.args = [str(arg) for arg in args]
        self.returncode = returncode
        super().__init__(" ".join([str(self.script)] + self.args) + " : failed")
