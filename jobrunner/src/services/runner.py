"""
Job runner - submits, tracks and reclaims Kubernetes Jobs owned by one scope.

Every job a runner creates is labelled with the runner's scope. Lookups,
deletes and log reads only treat a job as present when that label matches,
so runners with different scopes can share a namespace without touching
each other's jobs. The runner keeps no state between calls; Kubernetes is
the source of truth.
"""

import logging
import threading
import time
from types import MappingProxyType
from typing import List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from jobrunner.src.config import DEFAULT_SCOPE, get_settings
from jobrunner.src.errors import (
    NotExistsError,
    QueryError,
    SubmissionError,
    WaitCancelledError,
    WaitTimeoutError,
    is_not_found,
)
from jobrunner.src.k8s import (
    SCOPE_LABEL,
    build_job,
    get_batch_api,
    get_core_api,
    is_completed,
    job_labels,
    ownership_labels,
    to_selector,
)
from jobrunner.src.models.job import RunOption

logger = logging.getLogger(__name__)
settings = get_settings()

BACKGROUND_DELETE = client.V1DeleteOptions(propagation_policy="Background")

def _query_error(message: str, e: Exception) -> QueryError:
    if isinstance(e, ApiException):
        return QueryError.from_api_exception(message, e)
    return QueryError(f"{message}: {e}")

class Runner:
    """Lifecycle controller for the jobs of a single scope in one namespace."""

    def __init__(
        self,
        name: str = "",
        api_client: Optional[client.ApiClient] = None,
        namespace: Optional[str] = None,
    ):
        self.name = name or DEFAULT_SCOPE
        self.namespace = namespace or settings.k8s_namespace
        self._labels = MappingProxyType(ownership_labels(self.name))

        if api_client is not None:
            self._batch_v1 = client.BatchV1Api(api_client)
            self._core_v1 = client.CoreV1Api(api_client)
        else:
            self._batch_v1 = get_batch_api()
            self._core_v1 = get_core_api()

    @property
    def selector(self) -> str:
        return to_selector(self._labels)

    def _owns(self, job: client.V1Job) -> bool:
        labels = job.metadata.labels if job.metadata else None
        if not labels:
            return False
        return labels.get(SCOPE_LABEL) == self.name

    def submit(self, opt: RunOption):
        """Create a job. Kubernetes errors are raised as SubmissionError."""
        job = build_job(
            name=opt.name,
            image=opt.image,
            labels=job_labels(self.name, opt.name),
            replicas=opt.replicas,
            envs=opt.envs,
            args=opt.args,
            command=opt.command,
        )

        try:
            self._batch_v1.create_namespaced_job(
                namespace=self.namespace,
                body=job,
            )
        except ApiException as e:
            logger.error(f"Failed to create job {opt.name}: {e.status} {e.reason}")
            raise SubmissionError.from_api_exception(f"create job {opt.name}", e) from e
        except HTTPError as e:
            logger.error(f"Failed to create job {opt.name}: {e}")
            raise SubmissionError(f"create job {opt.name}: {e}") from e

        logger.info(f"Created job {opt.name} ({opt.replicas} replicas) in {self.namespace}")

    def list_jobs(self) -> List[str]:
        """Names of the jobs owned by this runner, in the order Kubernetes returns them."""
        try:
            jobs = self._batch_v1.list_namespaced_job(
                namespace=self.namespace,
                label_selector=self.selector,
            )
        except (ApiException, HTTPError) as e:
            raise _query_error("list jobs", e) from e

        return [job.metadata.name for job in jobs.items]

    def exists(self, name: str) -> bool:
        """
        Check whether a job exists and belongs to this runner.

        A missing job and a job owned by another scope both return False.
        """
        try:
            job = self._batch_v1.read_namespaced_job(
                name=name,
                namespace=self.namespace,
            )
        except ApiException as e:
            if is_not_found(e):
                return False
            raise _query_error(f"get job {name}", e) from e
        except HTTPError as e:
            raise _query_error(f"get job {name}", e) from e

        return self._owns(job)

    def delete(self, name: str):
        """Delete an owned job. Its pods are removed in the background."""
        if not self.exists(name):
            raise NotExistsError(f"job {name} does not exist")

        try:
            self._batch_v1.delete_namespaced_job(
                name=name,
                namespace=self.namespace,
                body=BACKGROUND_DELETE,
            )
        except ApiException as e:
            if is_not_found(e):
                raise NotExistsError(f"job {name} does not exist") from e
            raise _query_error(f"delete job {name}", e) from e
        except HTTPError as e:
            raise _query_error(f"delete job {name}", e) from e

        logger.info(f"Deleted job {name}")

    def wait(
        self,
        name: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        stop: Optional[threading.Event] = None,
    ):
        """
        Block until a job completes.

        Polls right away and then every `interval` seconds. Raises
        NotExistsError if the job is gone, and also if it exists but carries
        another scope's label. Raises WaitTimeoutError once `timeout` seconds
        have passed and WaitCancelledError if `stop` is set.
        Any other API failure ends the wait immediately.
        """
        timeout = settings.wait_timeout if timeout is None else timeout
        interval = settings.wait_poll_interval if interval is None else interval
        stop = stop or threading.Event()
        deadline = time.monotonic() + timeout

        while True:
            try:
                job = self._batch_v1.read_namespaced_job(
                    name=name,
                    namespace=self.namespace,
                )
            except ApiException as e:
                if is_not_found(e):
                    raise NotExistsError(f"job {name} does not exist") from e
                raise _query_error(f"get job {name}", e) from e
            except HTTPError as e:
                raise _query_error(f"get job {name}", e) from e

            if not self._owns(job):
                raise NotExistsError(f"job {name} does not exist")

            if is_completed(job):
                logger.info(f"Job {name} completed at {job.status.completion_time}")
                return

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(f"job {name} did not complete within {timeout}s")

            logger.debug(f"Job {name} still running, next poll in {min(interval, remaining):.1f}s")
            if stop.wait(min(interval, remaining)):
                raise WaitCancelledError(f"wait for job {name} cancelled")

    def cleanup(self) -> List[str]:
        """
        Delete every completed job owned by this runner.

        Running jobs are left alone. Deletes happen one at a time and the
        first failure stops the sweep; running it again picks up the rest.
        Returns the names of the deleted jobs.
        """
        try:
            jobs = self._batch_v1.list_namespaced_job(
                namespace=self.namespace,
                label_selector=self.selector,
            )
        except (ApiException, HTTPError) as e:
            raise _query_error("list jobs", e) from e

        deleted = []
        for job in jobs.items:
            if not is_completed(job):
                continue

            job_name = job.metadata.name
            try:
                self._batch_v1.delete_namespaced_job(
                    name=job_name,
                    namespace=self.namespace,
                    body=BACKGROUND_DELETE,
                )
            except ApiException as e:
                if is_not_found(e):
                    # Another runner with the same scope got there first
                    logger.debug(f"Job {job_name} already deleted")
                    continue
                logger.error(f"Cleanup stopped at job {job_name}: {e.status} {e.reason}")
                raise _query_error(f"delete job {job_name}", e) from e
            except HTTPError as e:
                logger.error(f"Cleanup stopped at job {job_name}: {e}")
                raise _query_error(f"delete job {job_name}", e) from e

            deleted.append(job_name)

        logger.info(f"Cleanup deleted {len(deleted)} completed job(s) for {self.name}")
        return deleted

    def logs(self, name: str) -> str:
        """Full log output of the first pod of a job."""
        selector = to_selector(job_labels(self.name, name))

        try:
            pods = self._core_v1.list_namespaced_pod(
                namespace=self.namespace,
                label_selector=selector,
            )
        except (ApiException, HTTPError) as e:
            raise _query_error(f"list pods for job {name}", e) from e

        if not pods.items:
            raise NotExistsError(f"no pods found for job {name}")

        pod_name = pods.items[0].metadata.name
        try:
            # Unparsed body; the preloaded path json-decodes the log text
            resp = self._core_v1.read_namespaced_pod_log(
                name=pod_name,
                namespace=self.namespace,
                _preload_content=False,
            )
            try:
                data = resp.data
            finally:
                resp.release_conn()
        except (ApiException, HTTPError) as e:
            raise _query_error(f"get logs for pod {pod_name}", e) from e

        return data.decode("utf-8", errors="replace")
