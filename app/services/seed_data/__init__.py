from .pipeline import SeedPipeline, seed_pipeline

__all__ = ["SeedPipeline", "seed_pipeline"]
