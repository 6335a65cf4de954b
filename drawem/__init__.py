from drawem.environment import DrawEMEnvironment
from drawem.pipeline import PipelineConfig, NeonatalPipeline

__all__ = ["DrawEMEnvironment", "PipelineConfig", "NeonatalPipeline"]
