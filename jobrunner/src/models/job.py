"""
Job submission models.
"""

from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional

from jobrunner.src.k8s.env import Envs

class RunOption(BaseModel):
    name: str
    image: str
    envs: Optional[Envs] = None
    args: List[str] = []
    command: List[str] = []
    replicas: int = 1

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("replicas")
    @classmethod
    def at_least_one_replica(cls, value: int) -> int:
        return value if value > 0 else 1
