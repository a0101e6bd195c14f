from jobrunner.src.services.runner import Runner

__all__ = [
    "Runner",
]
