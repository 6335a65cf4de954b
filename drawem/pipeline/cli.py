import sys
import logging
from typing import List
from nibabel.filebasedimages import ImageFileError

from drawem.common.errors import DrawEMError
from drawem.environment import DrawEMEnvironment
from drawem.pipeline.config import PipelineConfig
from drawem.pipeline.pipeline import NeonatalPipeline

LOGGER = logging.getLogger("DrawEM.pipeline")


def parse_args(environment: DrawEMEnvironment, argv: List[str] = None):
    parser = PipelineConfig.argument_parser(
        atlases=environment.available_atlases, tissue_atlases=environment.available_tissue_atlases,
    )
    return parser.parse_args(argv)


def main(argv: List[str] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    if argv is None:
        argv = sys.argv[1:]
    try:
        environment = DrawEMEnvironment.load()
    except DrawEMError as e:
        LOGGER.error(str(e))
        return 1

    args = parse_args(environment, argv)
    try:
        config = PipelineConfig.from_args(args, command=" ".join([sys.argv[0]] + list(argv)))
        environment = environment.with_atlas(config.tissue_atlas, config.atlas)
        NeonatalPipeline(config=config, environment=environment).run()
    except (DrawEMError, OSError, ImageFileError) as e:
        LOGGER.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
