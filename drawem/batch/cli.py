"""
Run the neonatal segmentation pipeline for every subject listed in a csv file
"""
import sys
import logging
from pathlib import Path
from typing import List

from drawem.common.config import DRAWEM_CONF, get_conf
from drawem.common.errors import DrawEMError
from drawem.environment import DrawEMEnvironment
from drawem.pipeline.config import PipelineConfig, DrawEMArgumentParser
from drawem.batch.runner import BatchRunner, read_subjects

LOGGER = logging.getLogger("DrawEM.batch")


def make_parser(environment: DrawEMEnvironment):
    parser = DrawEMArgumentParser(allow_abbrev=False)
    parser.add_argument("--csv-file", dest="csv_file", type=str, required=True,
                        help="List of subjects, columns t2, age and optionally mask, subject")
    parser.add_argument("--output-dir", dest="output_dir", type=str, required=True,
                        help="Each subject is processed in <output-dir>/<subject>")
    parser.add_argument("--n-thread", dest="n_thread", type=int,
                        default=get_conf(DRAWEM_CONF, group="batch", key="n_thread"),
                        help="Number of subjects processed in parallel, 0 to run them one after the other")
    PipelineConfig.add_pipeline_arguments(
        parser, atlases=environment.available_atlases, tissue_atlases=environment.available_tissue_atlases,
    )
    return parser


def main(argv: List[str] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        environment = DrawEMEnvironment.load()
    except DrawEMError as e:
        LOGGER.error(str(e))
        return 1
    args = make_parser(environment).parse_args(argv)
    output_dir = Path(args.output_dir).absolute()
    if args.atlas is None or args.tissue_atlas is None:
        LOGGER.error("No atlas available, check AVAILABLE_ATLASES and AVAILABLE_TISSUE_ATLASES")
        return 1
    try:
        subjects = read_subjects(Path(args.csv_file))
        environment = environment.with_atlas(args.tissue_atlas, args.atlas)
    except (DrawEMError, FileNotFoundError, ValueError) as e:
        LOGGER.error(str(e))
        return 1
    options = dict(
        atlas=args.atlas,
        tissue_atlas=args.tissue_atlas,
        cleanup=args.cleanup,
        save_posteriors=args.save_posteriors,
        threads=args.threads,
        verbose=args.verbose,
    )
    runner = BatchRunner(environment=environment, output_dir=output_dir, options=options, n_thread=args.n_thread)
    results = runner.run(subjects)
    report_path = runner.write_report(
        results, output_dir.joinpath(get_conf(DRAWEM_CONF, group="batch", key="report_name"))
    )
    n_failed = len([result for result in results if not result.ok])
    LOGGER.info("{} of {} subjects finished, report written to {}".format(
        len(results) - n_failed, len(results), report_path
    ))
    return 1 if n_failed else 0


if __name__ == '__main__':
    sys.exit(main())
