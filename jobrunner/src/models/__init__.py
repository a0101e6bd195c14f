from jobrunner.src.models.job import RunOption

__all__ = [
    "RunOption",
]
