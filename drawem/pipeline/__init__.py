from drawem.pipeline.config import PipelineConfig
from drawem.pipeline.pipeline import NeonatalPipeline
from drawem.pipeline.stage import ScriptRunner

__all__ = ["PipelineConfig", "NeonatalPipeline", "ScriptRunner"]
