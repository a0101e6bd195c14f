"""
Container environment builder.
"""

from kubernetes import client
from typing import Iterator, List, Mapping, Optional, Tuple

class Envs:
    """
    Ordered list of environment variables for a job container.

    Pairs are rendered in insertion order. Duplicate names are kept as-is.
    """

    def __init__(self):
        self._pairs: List[Tuple[str, str]] = []

    @classmethod
    def from_dict(cls, values: Mapping[str, str]) -> "Envs":
        envs = cls()
        for name, value in values.items():
            envs.add(name, value)
        return envs

    def add(self, name: str, value: str) -> "Envs":
        self._pairs.append((name, value))
        return self

    def env_vars(self) -> List[client.V1EnvVar]:
        return [client.V1EnvVar(name=name, value=value) for name, value in self._pairs]

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

def render_env(envs: Optional[Envs]) -> List[client.V1EnvVar]:
    """Render an optional builder; a missing builder renders to no variables."""
    if envs is None:
        return []
    return envs.env_vars()
