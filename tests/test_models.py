"""Tests for auction request models."""

import json

import pytest
from pydantic import ValidationError

from auctioneer_client.exceptions import EncodingError
from auctioneer_client.models import (
    LRPStartRequest,
    TaskStartRequest,
    encode_batch,
    new_lrp_start_request,
    new_task_start_request,
)


class TestTaskStartRequest:
    """Tests for TaskStartRequest model."""

    def test_valid_request(self):
        """Should create a valid task request with defaults."""
        request = TaskStartRequest(task_guid="task-1", domain="cf-apps")
        assert request.task_guid == "task-1"
        assert request.domain == "cf-apps"
        assert request.memory_mb == 0
        assert request.placement_tags == []

    def test_empty_task_guid(self):
        """Should reject empty task_guid."""
        with pytest.raises(ValidationError) as exc_info:
            TaskStartRequest(task_guid="", domain="cf-apps")
        assert "task_guid" in str(exc_info.value)

    def test_empty_domain(self):
        """Should reject empty domain."""
        with pytest.raises(ValidationError) as exc_info:
            TaskStartRequest(task_guid="task-1", domain="")
        assert "domain" in str(exc_info.value)

    def test_negative_memory(self):
        """Should reject negative resources."""
        with pytest.raises(ValidationError):
            TaskStartRequest(task_guid="task-1", domain="cf-apps", memory_mb=-1)

    def test_flat_wire_format(self):
        """Resource and placement fields should sit at the top level."""
        request = new_task_start_request(
            "task-1", "cf-apps", memory_mb=256, placement_tags=["blue"], rootfs="preloaded:cflinuxfs4"
        )
        data = request.model_dump(mode="json")
        assert data["memory_mb"] == 256
        assert data["placement_tags"] == ["blue"]
        assert data["rootfs"] == "preloaded:cflinuxfs4"


class TestLRPStartRequest:
    """Tests for LRPStartRequest model."""

    def test_valid_request(self):
        """Should create a valid LRP request."""
        request = new_lrp_start_request("pg-1", "cf-apps", [0, 1, 2], disk_mb=1024)
        assert request.process_guid == "pg-1"
        assert request.indices == [0, 1, 2]
        assert request.disk_mb == 1024

    def test_empty_indices(self):
        """Should reject an empty index list."""
        with pytest.raises(ValidationError) as exc_info:
            LRPStartRequest(process_guid="pg-1", domain="cf-apps", indices=[])
        assert "indices" in str(exc_info.value)

    def test_empty_process_guid(self):
        """Should reject empty process_guid."""
        with pytest.raises(ValidationError) as exc_info:
            LRPStartRequest(process_guid="", domain="cf-apps", indices=[0])
        assert "process_guid" in str(exc_info.value)

    def test_extra_fields_allowed(self):
        """Should keep extra fields on the wire."""
        request = LRPStartRequest.model_validate(
            {"process_guid": "pg-1", "domain": "cf-apps", "indices": [0], "log_guid": "lg"}
        )
        assert request.model_dump()["log_guid"] == "lg"


class TestEncodeBatch:
    """Tests for encode_batch."""

    def test_empty_batch(self):
        """Should encode an empty batch as an empty array."""
        assert encode_batch([]) == b"[]"

    def test_preserves_order(self):
        """Should keep element order."""
        batch = [new_task_start_request(f"task-{i}", "cf-apps") for i in range(3)]
        decoded = json.loads(encode_batch(batch))
        assert [item["task_guid"] for item in decoded] == ["task-0", "task-1", "task-2"]

    def test_accepts_plain_dicts(self):
        """Should pass JSON-serializable objects through unchanged."""
        decoded = json.loads(encode_batch([{"task_guid": "raw"}]))
        assert decoded == [{"task_guid": "raw"}]

    def test_unserializable_element(self):
        """Should raise EncodingError for unserializable elements."""
        with pytest.raises(EncodingError):
            encode_batch([object()])

    def test_unserializable_extra_field(self):
        """Should raise EncodingError when a model carries an unserializable extra."""
        request = TaskStartRequest.model_validate(
            {"task_guid": "task-1", "domain": "cf-apps", "blob": object()}
        )
        with pytest.raises(EncodingError):
            encode_batch([request])

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float(self, value):
        """Should raise EncodingError rather than emit invalid JSON."""
        with pytest.raises(EncodingError):
            encode_batch([{"memory_mb": value}])
