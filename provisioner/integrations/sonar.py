"""
Client for a SonarQube-compatible code-quality server.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import SonarError

MEASURE_METRIC_KEYS = "ncloc,bugs,vulnerabilities,code_smells,coverage"


class CETaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELED = "CANCELED"


class QualityGateStatus(str, Enum):
    ERROR = "ERROR"
    OK = "OK"
    WARN = "WARN"
    NONE = "NONE"


class CETask(BaseModel):
    """Compute-engine task as returned by ``/api/ce/task``."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str = ""
    component_key: str = Field("", alias="componentKey")
    analysis_id: str = Field("", alias="analysisId")
    status: CETaskStatus
    warning_count: int = Field(0, alias="warningCount")


class Measure(BaseModel):
    metric: str
    value: str = ""


class Condition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: QualityGateStatus
    metric_key: str = Field(..., alias="metricKey")
    comparator: str = ""
    error_threshold: str = Field("", alias="errorThreshold")
    actual_value: str = Field("", alias="actualValue")


class ProjectStatus(BaseModel):
    status: QualityGateStatus
    conditions: List[Condition] = Field(default_factory=list)


class SonarClient:
    """Thin async wrapper over the code-quality server's REST API."""

    def __init__(self, host: str, token: str, transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = 30.0):
        self.logger = logging.getLogger(__name__)
        self.host = host
        self._client = httpx.AsyncClient(
            base_url=host,
            auth=httpx.BasicAuth(token, ""),
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> "SonarClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict, what: str) -> dict:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SonarError(f"{what} error: {e}") from e

    async def get_ce_task_info(self, task_id: str) -> CETask:
        data = await self._get("/api/ce/task", {"id": task_id}, f"get sonar compute engine task: {task_id} info")
        try:
            return CETask.model_validate(data["task"])
        except (KeyError, TypeError, ValidationError) as e:
            raise SonarError(f"malformed sonar ce task: {task_id} response: {e}") from e

    async def get_component_measures(self, component: str, branch: str = "") -> List[Measure]:
        params = {"component": component, "metricKeys": MEASURE_METRIC_KEYS}
        if branch:
            params["branch"] = branch
        data = await self._get(
            "/api/measures/component", params,
            f"search sonar component measures, component: {component}, branch: {branch}",
        )
        return [Measure.model_validate(m) for m in data.get("component", {}).get("measures", [])]

    async def get_quality_gate_info(self, analysis_id: str) -> ProjectStatus:
        data = await self._get(
            "/api/qualitygates/project_status", {"analysisId": analysis_id},
            f"get sonar quality gate: {analysis_id} info",
        )
        try:
            return ProjectStatus.model_validate(data["projectStatus"])
        except (KeyError, TypeError, ValidationError) as e:
            raise SonarError(f"malformed sonar quality gate: {analysis_id} response: {e}") from e

    async def wait_for_ce_task(self, task_id: str, timeout: float = 600.0, interval: float = 5.0) -> str:
        """
        Poll a compute-engine task until it finishes.

        Returns:
            The analysis id of the successful task

        Raises:
            SonarError: the task failed, was canceled, or did not finish in time
        """
        deadline = time.monotonic() + timeout
        while True:
            await asyncio.sleep(interval)
            if time.monotonic() > deadline:
                raise SonarError(f"sonar ce task execution timeout {timeout:.0f}s")
            task = await self.get_ce_task_info(task_id)
            if task.status == CETaskStatus.SUCCESS:
                return task.analysis_id
            if task.status in (CETaskStatus.FAILED, CETaskStatus.CANCELED):
                raise SonarError(f"sonar ce task status was {task.status.value}")
            self.logger.debug(f"sonar ce task {task_id} is {task.status.value}")


def format_condition_table(conditions: List[Condition]) -> List[str]:
    """Fixed-width table rows for quality gate conditions."""
    row = "{:<40}|{:<10}|{:<10}|{:<10}|{:<20}|"
    lines = ["", row.format("Metric", "Status", "Operator", "Threshold", "Actualvalue")]
    for c in conditions:
        lines.append(row.format(c.metric_key, c.status.value, c.comparator, c.error_threshold, c.actual_value))
    lines.append("")
    return lines


def sonar_dashboard_address(base_addr: str, project_key: str, branch: str = "") -> str:
    """Dashboard URL for a project; ``base_addr`` unchanged when there is no key."""
    if not project_key:
        return base_addr
    try:
        url = httpx.URL(base_addr)
    except httpx.InvalidURL as e:
        raise SonarError(f"failed to parse sonar server address, error: {e}") from e
    query = {"id": project_key}
    if branch:
        query["branch"] = branch
    path = url.path.rstrip("/") + "/dashboard"
    return str(url.copy_with(path=path, query=urlencode(query).encode()))
