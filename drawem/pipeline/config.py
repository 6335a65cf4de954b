import sys
import math
import dataclasses
from pathlib import Path
from typing import List
from argparse import ArgumentParser, ArgumentTypeError, RawDescriptionHelpFormatter

from drawem.image import subject_name
from drawem.common.config import DRAWEM_CONF, get_conf
from drawem.common.errors import InvalidInputError, EnvironmentConfigError

TRUE_VALUES = ("1", "yes", "true")
FALSE_VALUES = ("0", "no", "false")

DESCRIPTION = "This script runs the neonatal segmentation pipeline of Draw-EM."
AGE_HELP = (
    "Number: Subject age in weeks. This is used to select the appropriate template for the initial registration. "
    "If the age is <28w or >44w, it will be set to 28w or 44w respectively."
)


def str2bool(value: str) -> bool:
    value = str(value).strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ArgumentTypeError(
        "invalid boolean value: '{}' (choose from {})".format(value, ", ".join(TRUE_VALUES + FALSE_VALUES))
    )


def round_age(value: str) -> int:
    """Age in weeks, rounded half to even like printf %.0f"""
    try:
        age = float(value)
    except ValueError:
        raise ArgumentTypeError(f"invalid age: '{value}'")
    if not math.isfinite(age) or age < 0:
        raise ArgumentTypeError(f"invalid age: '{value}'")
    return int(round(age))


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ArgumentTypeError(f"invalid number: '{value}'")
    if number < 1:
        raise ArgumentTypeError(f"must be at least 1: '{value}'")
    return number


class DrawEMArgumentParser(ArgumentParser):
    """ArgumentParser exiting with status 1 on invalid input"""
    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


@dataclasses.dataclass
class PipelineConfig:
    t2_path: Path
    age: int
    atlas: str
    tissue_atlas: str
    data_dir: Path
    mask_path: Path = None
    cleanup: bool = True
    save_posteriors: bool = False
    threads: int = 1
    verbose: int = 1
    subject: str = None
    command: str = ""

    def __post_init__(self):
        self.t2_path = Path(self.t2_path).absolute()
        self.data_dir = Path(self.data_dir).absolute()
        if not self.t2_path.is_file():
            raise FileNotFoundError("The T2 image provided as argument does not exist!")
        if self.mask_path is not None:
            self.mask_path = Path(self.mask_path).absolute()
            if not self.mask_path.is_file():
                raise FileNotFoundError(f"The mask provided as argument does not exist at {self.mask_path}!")
        if self.atlas is None or self.tissue_atlas is None:
            raise EnvironmentConfigError("No atlas available, check AVAILABLE_ATLASES and AVAILABLE_TISSUE_ATLASES")
        if self.threads < 1:
            raise InvalidInputError(f"Number of threads must be at least 1, got {self.threads}")
        if self.subject is None:
            self.subject = subject_name(self.t2_path)

    @staticmethod
    def add_pipeline_arguments(parser: ArgumentParser, atlases: List[str] = None,
                               tissue_atlases: List[str] = None) -> ArgumentParser:
        """Options shared by the single subject and the batch command lines"""
        atlases = atlases or []
        tissue_atlases = tissue_atlases or []
        parser.add_argument(
            "-a", "-atlas", dest="atlas", metavar="<atlasname>",
            choices=atlases or None, default=atlases[0] if atlases else None,
            help="Atlas used for the segmentation, options: {} (default: %(default)s)".format(", ".join(atlases)),
        )
        parser.add_argument(
            "-ta", "-tissue-atlas", dest="tissue_atlas", metavar="<atlasname>",
            choices=tissue_atlases or None, default=tissue_atlases[0] if tissue_atlases else None,
            help="Atlas used to compute the GM tissue probability, options: {} (default: %(default)s)".format(
                ", ".join(tissue_atlases)
            ),
        )
        parser.add_argument(
            "-c", "-cleanup", dest="cleanup", metavar="<0/1>", type=str2bool,
            default=get_conf(DRAWEM_CONF, group="pipeline", key="cleanup"),
            help="Whether cleanup of temporary files is required (default: %(default)s)",
        )
        parser.add_argument(
            "-p", "-save-posteriors", dest="save_posteriors", metavar="<0/1>", type=str2bool,
            default=get_conf(DRAWEM_CONF, group="pipeline", key="save_posteriors"),
            help="Whether the structures' posteriors are required (default: %(default)s)",
        )
        parser.add_argument(
            "-t", "-threads", dest="threads", metavar="<number>", type=positive_int,
            default=get_conf(DRAWEM_CONF, group="pipeline", key="threads"),
            help="Number of threads (CPU cores) allowed for the registration to run in parallel (default: %(default)s)",
        )
        parser.add_argument(
            "-v", "-verbose", dest="verbose", metavar="<0/1>", type=int,
            default=get_conf(DRAWEM_CONF, group="pipeline", key="verbose"),
            help="Whether the script progress is reported (default: %(default)s)",
        )
        return parser

    @staticmethod
    def argument_parser(atlases: List[str] = None, tissue_atlases: List[str] = None) -> ArgumentParser:
        parser = DrawEMArgumentParser(
            description=DESCRIPTION, add_help=False, allow_abbrev=False, formatter_class=RawDescriptionHelpFormatter,
        )
        parser.add_argument(
            "t2_path", metavar="subject_T2.nii.gz", type=str,
            help="Nifti Image: The T2 image of the subject to be segmented.",
        )
        parser.add_argument("age", metavar="scan_age", type=round_age, help=AGE_HELP)
        PipelineConfig.add_pipeline_arguments(parser, atlases=atlases, tissue_atlases=tissue_atlases)
        parser.add_argument(
            "-m", "-mask", dest="mask_path", metavar="<mask>", type=str, default=None,
            help="Brain mask to use for segmentation instead of computing it with BET",
        )
        parser.add_argument(
            "-d", "-data-dir", dest="data_dir", metavar="<directory>", type=str, default=None,
            help="The directory used to run the script and output the files.",
        )
        parser.add_argument("-h", "-help", "--help", action="help", help="Print usage.")
        return parser

    @classmethod
    def from_args(cls, args, command: str = ""):
        return cls(
            t2_path=Path(args.t2_path),
            age=args.age,
            atlas=args.atlas,
            tissue_atlas=args.tissue_atlas,
            data_dir=Path(args.data_dir) if args.data_dir is not None else Path.cwd(),
            mask_path=Path(args.mask_path) if args.mask_path is not None else None,
            cleanup=args.cleanup,
            save_posteriors=args.save_posteriors,
            threads=args.threads,
            verbose=args.verbose,
            command=command,
        )
