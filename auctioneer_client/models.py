"""Pydantic models for auction start requests.

These models match the JSON contract accepted by the auctioneer's
task and LRP auction endpoints. Resource and placement fields are flat
on the wire, not nested.
"""

import json
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from auctioneer_client.exceptions import EncodingError

# =============================================================================
# Shared Fields
# =============================================================================


class _StartRequest(BaseModel):
    """Resource and placement fields common to both request kinds.

    Optional fields:
        memory_mb: Memory required by the workload
        disk_mb: Disk required by the workload
        max_pids: Process limit for the workload
        placement_tags: Cell tags the workload must be placed on
        volume_drivers: Volume drivers the cell must provide
        rootfs: Root filesystem URI
    """

    memory_mb: int = Field(default=0, ge=0)
    disk_mb: int = Field(default=0, ge=0)
    max_pids: int = Field(default=0, ge=0)

    placement_tags: list[str] = Field(default_factory=list)
    volume_drivers: list[str] = Field(default_factory=list)
    rootfs: str = ""

    model_config = {"extra": "allow"}


# =============================================================================
# Request Models
# =============================================================================


class TaskStartRequest(_StartRequest):
    """Request to run an auction for a one-shot task.

    Required fields:
        task_guid: Unique identifier of the task
        domain: Domain the task belongs to
    """

    task_guid: str
    domain: str

    @field_validator("task_guid", "domain")
    @classmethod
    def identifiers_not_empty(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(f"{info.field_name} must not be empty")
        return v


class LRPStartRequest(_StartRequest):
    """Request to run auctions for instances of a long-running process.

    Required fields:
        process_guid: Unique identifier of the LRP
        domain: Domain the LRP belongs to
        indices: Instance indices to place, at least one
    """

    process_guid: str
    domain: str
    indices: list[int]

    @field_validator("process_guid", "domain")
    @classmethod
    def identifiers_not_empty(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(f"{info.field_name} must not be empty")
        return v

    @field_validator("indices")
    @classmethod
    def indices_not_empty(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("indices must not be empty")
        return v


def new_task_start_request(
    task_guid: str,
    domain: str,
    *,
    memory_mb: int = 0,
    disk_mb: int = 0,
    max_pids: int = 0,
    placement_tags: list[str] | None = None,
    volume_drivers: list[str] | None = None,
    rootfs: str = "",
) -> TaskStartRequest:
    """Build a TaskStartRequest from its parts."""
    return TaskStartRequest(
        task_guid=task_guid,
        domain=domain,
        memory_mb=memory_mb,
        disk_mb=disk_mb,
        max_pids=max_pids,
        placement_tags=placement_tags or [],
        volume_drivers=volume_drivers or [],
        rootfs=rootfs,
    )


def new_lrp_start_request(
    process_guid: str,
    domain: str,
    indices: Sequence[int],
    *,
    memory_mb: int = 0,
    disk_mb: int = 0,
    max_pids: int = 0,
    placement_tags: list[str] | None = None,
    volume_drivers: list[str] | None = None,
    rootfs: str = "",
) -> LRPStartRequest:
    """Build an LRPStartRequest for the given instance indices."""
    return LRPStartRequest(
        process_guid=process_guid,
        domain=domain,
        indices=list(indices),
        memory_mb=memory_mb,
        disk_mb=disk_mb,
        max_pids=max_pids,
        placement_tags=placement_tags or [],
        volume_drivers=volume_drivers or [],
        rootfs=rootfs,
    )


# =============================================================================
# Encoding
# =============================================================================


def encode_batch(batch: Sequence[Any]) -> bytes:
    """Serialize a request batch to a JSON array, preserving element order.

    Args:
        batch: Start requests. Pydantic models are dumped in JSON mode,
            anything else must already be JSON-serializable.

    Returns:
        UTF-8 encoded JSON array.

    Raises:
        EncodingError: If any element cannot be serialized.
    """
    try:
        items = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for item in batch
        ]
        return json.dumps(items, separators=(",", ":"), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"failed to encode request batch: {e}") from e
