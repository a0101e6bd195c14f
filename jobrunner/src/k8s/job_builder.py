"""
Kubernetes Job builder for runner-managed jobs.
"""

from kubernetes import client
from typing import Dict, List, Optional

from jobrunner.src.config import get_settings
from jobrunner.src.k8s.env import Envs, render_env

settings = get_settings()

def build_job(
    name: str,
    image: str,
    labels: Dict[str, str],
    replicas: int = 1,
    envs: Optional[Envs] = None,
    args: Optional[List[str]] = None,
    command: Optional[List[str]] = None,
) -> client.V1Job:
    """
    Build a run-to-completion Job.

    The same labels go on the Job and on its pod template so pods can be
    found by selector later. Failed containers are restarted in place.
    """
    container = client.V1Container(
        name=settings.container_name,
        image=image,
        command=command or None,
        args=args or None,
        env=render_env(envs) or None,
    )

    pod_spec = client.V1PodSpec(
        containers=[container],
        restart_policy="OnFailure",
    )

    template = client.V1PodTemplateSpec(
        metadata=client.V1ObjectMeta(labels=dict(labels)),
        spec=pod_spec,
    )

    job_spec = client.V1JobSpec(
        template=template,
        parallelism=replicas,
        completions=replicas,
    )

    return client.V1Job(
        api_version="batch/v1",
        kind="Job",
        metadata=client.V1ObjectMeta(
            name=name,
            labels=dict(labels),
        ),
        spec=job_spec,
    )

def is_completed(job: client.V1Job) -> bool:
    """
    A job is finished once Kubernetes sets its completion time.

    This says nothing about success or failure.
    """
    if job.status is None:
        return False
    return job.status.completion_time is not None
