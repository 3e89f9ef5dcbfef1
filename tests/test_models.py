"""Tests for domain/models.py."""

import json

import pytest
from pydantic import ValidationError
from tscloud.domain.models import (
    MUTABLE_FIELDS,
    ClusterConfig,
    ClusterRecord,
    ClusterState,
    ClusterUpdateRequest,
    YesNo,
)


class TestClusterConfig:
    def test_defaults(self):
        config = ClusterConfig(memory="0.5_gb", vcpu="2_vcpus", region="oregon")

        assert config.high_availability is YesNo.no
        assert config.high_performance_disk is YesNo.no
        assert config.name is None
        assert config.auto_upgrade_capacity is False

    def test_numeric_memory_coerced(self):
        config = ClusterConfig(memory=4, vcpu="2_vcpus", region="oregon")
        assert config.memory == "4"

    def test_yaml_booleans_map_to_yes_no(self):
        config = ClusterConfig(
            memory="1_gb",
            vcpu="2_vcpus",
            region="oregon",
            high_availability=True,
            high_performance_disk=False,
        )
        assert config.high_availability is YesNo.yes
        assert config.high_performance_disk is YesNo.no

    def test_empty_region_rejected(self):
        with pytest.raises(ValidationError):
            ClusterConfig(memory="0.5_gb", vcpu="2_vcpus", region="  ")

    def test_invalid_flag_rejected(self):
        with pytest.raises(ValidationError):
            ClusterConfig(memory="0.5_gb", vcpu="2_vcpus", region="oregon", high_availability="maybe")

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            ClusterConfig(memory="0.5_gb", vcpu="2_vcpus", region="oregon", replicas=3)


class TestClusterRecord:
    def test_region_is_first_entry(self):
        record = ClusterRecord(id="c1", regions=["oregon", "frankfurt"])
        assert record.region == "oregon"

    def test_no_regions(self):
        assert ClusterRecord(id="c1", regions=None).region == ""

    def test_nulls_become_empty_strings(self):
        record = ClusterRecord(id="c1", name=None, typesense_server_version=None, status=None)

        assert record.name == ""
        assert record.typesense_server_version == ""
        assert record.status == ""

    def test_unknown_api_fields_ignored(self):
        record = ClusterRecord(id="c1", hostnames={"load_balanced": "x"}, status="in_service")
        assert not hasattr(record, "hostnames")
        assert record.is_provisioning is False

    def test_null_auto_upgrade_capacity_is_false(self):
        record = ClusterRecord(id="c1", status="in_service", auto_upgrade_capacity=None)
        assert record.auto_upgrade_capacity is False

    def test_is_provisioning(self):
        assert ClusterRecord(id="c1", status="provisioning").is_provisioning


class TestClusterState:
    def test_from_record_flattens_region(self):
        record = ClusterRecord(
            id="c1",
            name="search",
            memory="0.5_gb",
            vcpu="2_vcpus",
            regions=["oregon"],
            status="in_service",
        )

        state = ClusterState.from_record(record)

        assert state.region == "oregon"
        assert state.status == "in_service"

    def test_sorted_json(self):
        state = ClusterState.from_record(ClusterRecord(id="c1", regions=["oregon"]))
        data = json.loads(state.to_sorted_json())

        assert list(data) == sorted(data)


def test_update_request_carries_only_mutable_fields():
    assert set(ClusterUpdateRequest.model_fields) == set(MUTABLE_FIELDS)

    with pytest.raises(ValidationError):
        ClusterUpdateRequest(name="x", memory="1_gb")
