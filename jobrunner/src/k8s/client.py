"""
Kubernetes client initialization.
"""

from kubernetes import client, config
import logging

from jobrunner.src.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_api_client = None
_batch_v1 = None
_core_v1 = None

def init_k8s_client() -> bool:
    """Initialize the shared Kubernetes client."""
    global _api_client, _batch_v1, _core_v1

    try:
        if settings.k8s_in_cluster:
            # Running inside Kubernetes
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes config")
        else:
            # Running locally (Docker Desktop, minikube, kind, etc.)
            config.load_kube_config()
            logger.info("Loaded local Kubernetes config")

        _api_client = client.ApiClient()
        _batch_v1 = client.BatchV1Api(_api_client)
        _core_v1 = client.CoreV1Api(_api_client)

        logger.info("Kubernetes client initialized successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize Kubernetes client: {e}")
        return False

def get_batch_api() -> client.BatchV1Api:
    """Get BatchV1 API client for Job operations."""
    if _batch_v1 is None and not init_k8s_client():
        raise RuntimeError("Kubernetes client is not configured")
    return _batch_v1

def get_core_api() -> client.CoreV1Api:
    """Get CoreV1 API client for Pod operations."""
    if _core_v1 is None and not init_k8s_client():
        raise RuntimeError("Kubernetes client is not configured")
    return _core_v1

def reset_k8s_client():
    """Drop the cached client so the next accessor reloads configuration."""
    global _api_client, _batch_v1, _core_v1
    _api_client = None
    _batch_v1 = None
    _core_v1 = None
