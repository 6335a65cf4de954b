from pathlib import Path
from typing import List


class Resource:
    """
    Resource base class, a wrapper around pathlib.Path
    """
    def __init__(self, path: Path):
        self.path = path

    def __str__(self):
        return str(self.path)

    def exists(self):
        return self.path.exists()


class T2Image(Resource):
    """
    T2 image of a subject, staged as ``<data-dir>/T2/<subject>.nii.gz``
    """
    def __init__(self, path: Path, subject: str):
        self.subject = subject
        super().__init__(path)

    @classmethod
    def from_dir(cls, dir: Path, subject: str):
        return cls(dir.joinpath("T2", f"{subject}.nii.gz"), subject)

    def __repr__(self):
        return "T2Image(path={}, subject={})".format(self.path, self.subject)


class BrainMask(Resource):
    """
    User provided brain mask, staged as ``<data-dir>/segmentations/<subject>_brain_mask.nii.gz``.
    When present, preprocessing uses it instead of computing one with BET.
    """
    def __init__(self, path: Path, subject: str):
        self.subject = subject
        super().__init__(path)

    @classmethod
    def from_dir(cls, dir: Path, subject: str):
        return cls(dir.joinpath("segmentations", f"{subject}_brain_mask.nii.gz"), subject)


class Segmentation(Resource):
    """
    Final label map written by the post-processing scripts, ``<data-dir>/segmentations/<subject>_labels.nii.gz``
    """
    def __init__(self, path: Path, subject: str):
        self.subject = subject
        super().__init__(path)

    @classmethod
    def from_dir(cls, dir: Path, subject: str):
        return cls(dir.joinpath("segmentations", f"{subject}_labels.nii.gz"), subject)


class SubjectLogs:
    """
    Log files the sub-scripts append to, ``<data-dir>/logs/<subject>`` and ``<data-dir>/logs/<subject>-err``
    """
    def __init__(self, dir: Path, subject: str):
        self.dir = dir
        self.out = dir.joinpath(subject)
        self.err = dir.joinpath(f"{subject}-err")

    @classmethod
    def from_dir(cls, dir: Path, subject: str):
        return cls(dir.joinpath("logs"), subject)

    @property
    def files(self) -> List[Path]:
        return [self.out, self.err]

    def reset(self):
        self.dir.mkdir(parents=True, exist_ok=True)
        for path in self.files:
            if path.exists():
                path.unlink()
