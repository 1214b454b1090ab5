"""Minimal models of ``oc get ... -o json`` list output used to pick follow-up targets."""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class Metadata(BaseModel):
    name: str = ""


class ContainerStateDetail(BaseModel):
    reason: str = ""


class ContainerState(BaseModel):
    waiting: ContainerStateDetail = Field(default_factory=ContainerStateDetail)
    terminated: ContainerStateDetail = Field(default_factory=ContainerStateDetail)


class ContainerStatus(BaseModel):
    state: ContainerState = Field(default_factory=ContainerState)


class PodStatus(BaseModel):
    phase: str = ""
    container_statuses: list[ContainerStatus] = Field(default_factory=list, alias="containerStatuses")


class Pod(BaseModel):
    """Pod with just enough status to classify it."""

    metadata: Metadata = Field(default_factory=Metadata)
    status: PodStatus = Field(default_factory=PodStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def failing(self) -> bool:
        return self.status.phase not in ("Succeeded", "Running")

    @property
    def seccomp_error(self) -> bool:
        for cs in self.status.container_statuses:
            reason = cs.state.waiting.reason + cs.state.terminated.reason
            if "seccomp" in reason.lower():
                return True
        return False


class JobStatus(BaseModel):
    failed: int | None = None
    succeeded: int | None = None


class Job(BaseModel):
    metadata: Metadata = Field(default_factory=Metadata)
    status: JobStatus = Field(default_factory=JobStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    def history_line(self) -> str:
        return f"{self.name}: {self.status.failed or 0} failed, {self.status.succeeded or 0} succeeded"


ItemT = TypeVar("ItemT", bound=BaseModel)


class ItemList(BaseModel, Generic[ItemT]):
    """The `{"items": [...]}` envelope of `oc get -o json`."""

    items: list[ItemT] = Field(default_factory=list)


def parse_list(model: type[ItemT], output: str) -> list[ItemT]:
    """Parse the ``items`` of an ``oc`` JSON list; unparseable output yields no items."""
    try:
        return ItemList[model].model_validate_json(output).items  # type: ignore[valid-type]
    except ValidationError as e:
        logger.debug("Could not parse %s list: %s", model.__name__, e.errors()[:1])
        return []
