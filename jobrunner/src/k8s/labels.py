"""
Ownership labels for runner-managed jobs and pods.
"""

from typing import Dict, Mapping

SCOPE_LABEL = "scheduler"
NAME_LABEL = "name"

def ownership_labels(scope: str) -> Dict[str, str]:
    """Base label set shared by every job a runner owns."""
    return {SCOPE_LABEL: scope}

def job_labels(scope: str, job_name: str) -> Dict[str, str]:
    """Labels applied to a job and its pods, and used to find those pods."""
    labels = ownership_labels(scope)
    labels[NAME_LABEL] = job_name
    return labels

def to_selector(labels: Mapping[str, str]) -> str:
    """Render labels as an equality-based label selector."""
    return ", ".join(f"{key}={value}" for key, value in labels.items())
