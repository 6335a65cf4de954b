__all__ = [
    "is_nii_gz",
    "subject_name",
    "convert_image",
    "stage_image",
]

import shutil
import nibabel as nib
from pathlib import Path
from typing import Union


NII_GZ_SUFFIX = "nii.gz"


def is_nii_gz(path: Union[Path, str]) -> bool:
    return str(path).endswith(NII_GZ_SUFFIX)


def subject_name(path: Union[Path, str]) -> str:
    """ Subject identifier of an image, its file name without the .nii.gz or .nii extension

    Args:
        path: path to the subject image

    Returns:
        file name stripped of the NIfTI extension, e.g. ``sub-01_T2w`` for ``/data/sub-01_T2w.nii.gz``
    """
    name = Path(path).name
    for suffix in (".nii.gz", ".nii"):
        if name.endswith(suffix):
            return name[:-len(suffix)]
    return name


def convert_image(input_path: Path, output_path: Path) -> Path:
    """ Convert any image format nibabel can read (.nii, .hdr/.img, .mgz, ...) to the format of output_path

    Args:
        input_path: image to read
        output_path: destination, its extension (.nii.gz) selects the output format

    Returns:
        output_path
    """
    nim = nib.load(str(input_path))
    nib.save(nim, str(output_path))
    return output_path


def stage_image(input_path: Path, output_path: Path) -> Path:
    """Copy a .nii.gz image to output_path, converting it first if it is in any other format.
    An image already staged at output_path is left as it is."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.exists() and output_path.samefile(input_path):
        return output_path
    if is_nii_gz(input_path):
        shutil.copy(str(input_path), str(output_path))
    else:
        convert_image(input_path, output_path)
    return output_path
