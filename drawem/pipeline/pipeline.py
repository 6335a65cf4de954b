import logging

from drawem.image import stage_image
from drawem.environment import DrawEMEnvironment
from drawem.pipeline.config import PipelineConfig
from drawem.pipeline.stage import ScriptRunner
from drawem.common.resource import T2Image, BrainMask, Segmentation, SubjectLogs

LOGGER = logging.getLogger("DrawEM.pipeline")


class NeonatalPipeline:
    """
    Neonatal segmentation pipeline of Draw-EM for one subject.

    It stages the inputs into the data directory

    .. code-block:: text

        /data-dir/
            T2/
                subject.nii.gz                      ->  T2 image, converted to .nii.gz if needed
            segmentations/
                subject_brain_mask.nii.gz           ->  Brain mask, only if one was provided
            logs/
                subject                             ->  Sub-script output, reset before the run
                subject-err

    and runs the sub-scripts in order, stopping at the first one that fails:
    preprocessing, multi-atlas registration, label propagation, segmentation, hemisphere separation,
    correction and postprocessing, optionally posterior maps and cleanup. The final labels are written to
    ``segmentations/subject_labels.nii.gz``.

    To run it, use the following command:

    .. code-block:: text

        drawem-neonatal-segmentation subject.nii.gz 40 -d /data-dir/ -t 8

    """
    def __init__(self, config: PipelineConfig, environment: DrawEMEnvironment):
        self.config = config
        self.environment = environment
        self.runner = ScriptRunner(
            scripts_dir=environment.scripts_dir,
            env=dict(environment.variables, DRAWEMDIR=str(environment.drawem_dir)),
            cwd=config.data_dir,
        )

    def stage_inputs(self) -> T2Image:
        subj = self.config.subject
        t2_image = T2Image.from_dir(self.config.data_dir, subj)
        stage_image(self.config.t2_path, t2_image.path)
        if self.config.mask_path is not None:
            mask = BrainMask.from_dir(self.config.data_dir, subj)
            stage_image(self.config.mask_path, mask.path)
        return t2_image

    def header(self) -> str:
        revision = self.environment.git_revision or "unknown"
        lines = [
            f"DrawEM multi atlas  {self.environment.version} (branch version: {revision})",
            f"Subject:      {self.config.subject}",
            f"Age:          {self.config.age}",
            f"Tissue atlas: {self.config.tissue_atlas}",
            f"Atlas:        {self.config.atlas}",
            f"Directory:    {self.config.data_dir}",
            f"Posteriors:   {int(self.config.save_posteriors)}",
            f"Cleanup:      {int(self.config.cleanup)}",
            f"Threads:      {self.config.threads}",
            "",
            self.config.command,
            "----------------------------",
        ]
        return "\n".join(lines)

    def run(self) -> Segmentation:
        config = self.config
        subj = config.subject
        self.stage_inputs()

        if config.verbose > 0:
            LOGGER.info(self.header())

        SubjectLogs.from_dir(config.data_dir, subj).reset()

        self.runner.run("preprocess.sh", subj)
        # registration of atlases
        self.runner.run("register-multi-atlas.sh", subj, config.age, config.threads)
        # structural segmentation
        self.runner.run("labels-multi-atlas.sh", subj)
        self.runner.run("segmentation.sh", subj)
        # post-processing
        self.runner.run("separate-hemispheres.sh", subj)
        self.runner.run("correct-segmentation.sh", subj)
        self.runner.run("postprocess.sh", subj)

        if config.save_posteriors:
            self.runner.run("postprocess-pmaps.sh", subj)

        labels = Segmentation.from_dir(config.data_dir, subj)
        if config.cleanup and labels.exists():
            self.runner.run("clear-data.sh", subj)
        return labels
