from pydantic_settings import BaseSettings
from functools import lru_cache

DEFAULT_SCOPE = "jobrunner"

class Settings(BaseSettings):
    # Kubernetes settings
    k8s_namespace: str = "default"
    k8s_in_cluster: bool = False  # Set True when running inside K8s

    # Job settings
    container_name: str = "container"

    # Wait settings
    wait_poll_interval: float = 2.0  # seconds between polls
    wait_timeout: float = 3600.0  # give up after 1 hour

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
