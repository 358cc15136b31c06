from .generation import GenerationPolicy
from .pipeline import ComposerConfig, DetectorConfig, ExtractionConfig, PipelineConfig

__all__ = [
    "GenerationPolicy",
    "DetectorConfig",
    "ComposerConfig",
    "ExtractionConfig",
    "PipelineConfig",
]
