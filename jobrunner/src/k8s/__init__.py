from jobrunner.src.k8s.client import (
    init_k8s_client,
    get_batch_api,
    get_core_api,
    reset_k8s_client,
)
from jobrunner.src.k8s.env import Envs, render_env
from jobrunner.src.k8s.job_builder import (
    build_job,
    is_completed,
)
from jobrunner.src.k8s.labels import (
    SCOPE_LABEL,
    NAME_LABEL,
    ownership_labels,
    job_labels,
    to_selector,
)

__all__ = [
    "init_k8s_client",
    "get_batch_api",
    "get_core_api",
    "reset_k8s_client",
    "Envs",
    "render_env",
    "build_job",
    "is_completed",
    "SCOPE_LABEL",
    "NAME_LABEL",
    "ownership_labels",
    "job_labels",
    "to_selector",
]
