"""
Shared pytest fixtures for job runner tests.

FakeCluster stands in for the BatchV1Api and CoreV1Api objects so the runner
can be exercised without a real Kubernetes cluster. It stores real
kubernetes.client models and raises real ApiExceptions.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.response import HTTPResponse

from jobrunner.src.services.runner import Runner

NAMESPACE = "jobrunner-test"

def parse_selector(selector: str) -> Dict[str, str]:
    terms = {}
    for term in selector.split(","):
        term = term.strip()
        if term:
            key, value = term.split("=", 1)
            terms[key] = value
    return terms

def matches(labels: Optional[Dict[str, str]], selector: str) -> bool:
    labels = labels or {}
    return all(labels.get(k) == v for k, v in parse_selector(selector).items())

class FakeBatchApi:
    def __init__(self, cluster: "FakeCluster"):
        self.cluster = cluster

    def create_namespaced_job(self, namespace, body):
        self.cluster.record("create_namespaced_job", namespace, body.metadata.name)
        key = (namespace, body.metadata.name)
        if key in self.cluster.jobs:
            raise ApiException(status=409, reason="AlreadyExists")
        body.metadata.namespace = namespace
        body.status = client.V1JobStatus()
        self.cluster.jobs[key] = body
        return body

    def read_namespaced_job(self, name, namespace):
        self.cluster.record("read_namespaced_job", namespace, name)
        hook = self.cluster.read_hooks.get(name)
        if hook:
            hook()
        try:
            return self.cluster.jobs[(namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="NotFound")

    def list_namespaced_job(self, namespace, label_selector=""):
        self.cluster.record("list_namespaced_job", namespace, label_selector)
        items = [
            job for (ns, _), job in self.cluster.jobs.items()
            if ns == namespace and matches(job.metadata.labels, label_selector)
        ]
        return client.V1JobList(items=items)

    def delete_namespaced_job(self, name, namespace, body=None):
        self.cluster.record("delete_namespaced_job", namespace, name)
        self.cluster.delete_bodies.append(body)
        if self.cluster.jobs.pop((namespace, name), None) is None:
            raise ApiException(status=404, reason="NotFound")
        for key in [k for k, pod in self.cluster.pods.items()
                    if k[0] == namespace and pod.metadata.labels.get("job") == name]:
            del self.cluster.pods[key]
        return client.V1Status(status="Success")

class FakeCoreApi:
    def __init__(self, cluster: "FakeCluster"):
        self.cluster = cluster

    def list_namespaced_pod(self, namespace, label_selector=""):
        self.cluster.record("list_namespaced_pod", namespace, label_selector)
        items = [
            pod for (ns, _), pod in self.cluster.pods.items()
            if ns == namespace and matches(pod.metadata.labels, label_selector)
        ]
        return client.V1PodList(items=items)

    def read_namespaced_pod_log(self, name, namespace, _preload_content=True):
        self.cluster.record("read_namespaced_pod_log", namespace, name)
        try:
            output = self.cluster.logs[(namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="NotFound")
        if isinstance(output, str):
            output = output.encode("utf-8")
        return HTTPResponse(body=output, status=200, preload_content=False)

class FakeCluster:
    """In-memory jobs, pods and pod logs, with per-method failure injection."""

    def __init__(self):
        self.jobs: Dict[tuple, client.V1Job] = {}
        self.pods: Dict[tuple, client.V1Pod] = {}
        self.logs: Dict[tuple, str] = {}
        self.calls: List[tuple] = []
        self.delete_bodies: List = []
        self.read_hooks: Dict[str, Callable[[], None]] = {}
        self.failures: Dict[str, List[Exception]] = {}
        self.batch = FakeBatchApi(self)
        self.core = FakeCoreApi(self)

    def record(self, method: str, namespace: str, arg: str):
        self.calls.append((method, namespace, arg))
        pending = self.failures.get(method)
        if pending:
            raise pending.pop(0)

    def fail(self, method: str, error: Exception, times: int = 1):
        self.failures.setdefault(method, []).extend([error] * times)

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    def complete(self, name: str, namespace: str = NAMESPACE, output: str = "Hello from Docker!\n"):
        """Mark a job complete and give it one finished pod per replica."""
        job = self.jobs[(namespace, name)]
        job.status.completion_time = datetime.now(timezone.utc)
        job.status.succeeded = job.spec.completions
        for i in range(job.spec.completions or 1):
            pod_name = f"{name}-{i}"
            labels = dict(job.spec.template.metadata.labels)
            labels["job"] = name
            self.pods[(namespace, pod_name)] = client.V1Pod(
                metadata=client.V1ObjectMeta(name=pod_name, namespace=namespace, labels=labels),
            )
            self.logs[(namespace, pod_name)] = output

    def complete_after(self, name: str, reads: int, namespace: str = NAMESPACE):
        """Complete a job right before its `reads`-th read is answered."""
        state = {"reads": 0}

        def hook():
            state["reads"] += 1
            if state["reads"] == reads:
                self.complete(name, namespace)

        self.read_hooks[name] = hook

    def add_foreign_job(self, name: str, labels: Optional[Dict[str, str]], namespace: str = NAMESPACE):
        """A job created outside any runner, or by a runner with another scope."""
        self.jobs[(namespace, name)] = client.V1Job(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
            status=client.V1JobStatus(),
        )

@pytest.fixture
def cluster():
    return FakeCluster()

@pytest.fixture
def make_runner(cluster):
    def factory(name: str = "runner", namespace: str = NAMESPACE) -> Runner:
        with patch.object(client, "BatchV1Api", return_value=cluster.batch), \
                patch.object(client, "CoreV1Api", return_value=cluster.core):
            return Runner(name, MagicMock(spec=client.ApiClient), namespace)
    return factory

@pytest.fixture
def runner(make_runner):
    return make_runner()
