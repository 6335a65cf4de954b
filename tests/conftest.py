import stat
import pytest
import numpy as np
import nibabel as nib
from pathlib import Path

SCRIPTS = [
    "preprocess.sh",
    "register-multi-atlas.sh",
    "labels-multi-atlas.sh",
    "segmentation.sh",
    "separate-hemispheres.sh",
    "correct-segmentation.sh",
    "postprocess.sh",
    "postprocess-pmaps.sh",
    "clear-data.sh",
]

CONFIGURATION_SH = """\
AVAILABLE_ATLASES="ALBERT M-CRIB"
AVAILABLE_TISSUE_ATLASES="ALBERT neonatal"
PATH="$DRAWEMDIR/ThirdParty/bin:$PATH"
echo "configuration loaded"
"""

SET_ATLAS_SH = """\
TISSUE_ATLAS_NAME=$1
ATLAS_NAME=$2
case " $AVAILABLE_ATLASES " in
  *" $2 "*) ;;
  *) echo "Unknown atlas $2" >&2; exit 1 ;;
esac
"""

# Records the call, fails when named in FAIL_SCRIPT (for FAIL_SUBJECT only, if set)
# and writes the labels the way postprocess.sh would.
SCRIPT_SH = """\
#!/bin/bash
name=$(basename "$0")
echo "$name $*" >> "$DRAWEMDIR/calls.txt"
echo "$(pwd)|${ATLAS_NAME:-}|${TISSUE_ATLAS_NAME:-}" > "$DRAWEMDIR/env.txt"
if [ "$name" = "${FAIL_SCRIPT:-}" ]; then
  if [ -z "${FAIL_SUBJECT:-}" ] || [ "$1" = "${FAIL_SUBJECT:-}" ]; then
    exit 3
  fi
fi
if [ "$name" = "postprocess.sh" ] && [ -z "${NO_LABELS:-}" ]; then
  mkdir -p segmentations && touch "segmentations/$1_labels.nii.gz"
fi
exit 0
"""


def write_image(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = np.arange(4 * 5 * 6, dtype=np.int16).reshape((4, 5, 6))
    nib.save(nib.Nifti1Image(data, np.eye(4)), str(path))
    return path


@pytest.fixture
def drawem_dir(tmp_path, monkeypatch):
    drawem_dir = tmp_path.joinpath("DrawEM")
    drawem_dir.joinpath("parameters").mkdir(parents=True)
    drawem_dir.joinpath("scripts").mkdir()
    drawem_dir.joinpath("parameters", "configuration.sh").write_text(CONFIGURATION_SH)
    drawem_dir.joinpath("parameters", "set_atlas.sh").write_text(SET_ATLAS_SH)
    drawem_dir.joinpath("VERSION").write_text("1.3\n")
    for script in SCRIPTS:
        path = drawem_dir.joinpath("scripts", script)
        path.write_text(SCRIPT_SH)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    for variable in ("FAIL_SCRIPT", "FAIL_SUBJECT", "NO_LABELS"):
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setenv("DRAWEMDIR", str(drawem_dir))
    return drawem_dir


@pytest.fixture
def t2_image(tmp_path):
    return write_image(tmp_path.joinpath("input", "sub-01_T2w.nii.gz"))


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path.joinpath("derivatives", "sub-01")


def read_calls(drawem_dir: Path):
    calls_path = drawem_dir.joinpath("calls.txt")
    if not calls_path.exists():
        return []
    return calls_path.read_text().splitlines()
