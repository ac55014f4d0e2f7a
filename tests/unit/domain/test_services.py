"""Tests for identifier extraction domain services."""

import pytest

from dxl_epo_client.domain.constants import EPO_COMMANDS_SERVICE_TYPE, EPO_REMOTE_SERVICE_TYPE
from dxl_epo_client.domain.enums import ServiceVariant
from dxl_epo_client.domain.models import ServiceDescriptor
from dxl_epo_client.domain.services import (
    IdentifierExtractionService,
    commands_identifiers,
    remote_identifiers,
    unique_identifiers,
)


def remote(*channels):
    return ServiceDescriptor(service_type=EPO_REMOTE_SERVICE_TYPE, request_channels=list(channels))


def commands(metadata):
    return ServiceDescriptor(service_type=EPO_COMMANDS_SERVICE_TYPE, metadata=metadata)


class TestUniqueIdentifiers:
    def test_keeps_first_seen_order(self):
        assert unique_identifiers(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_drops_empty(self):
        assert unique_identifiers(["", "a", ""]) == ["a"]


class TestRemoteExtraction:
    """Test cases for "remote" request channel extraction."""

    def test_suffix_after_prefix(self):
        descriptor = remote("/mcafee/service/epo/remote/epo1")
        assert remote_identifiers(descriptor) == ["epo1"]

    def test_ignores_other_channels(self):
        descriptor = remote(
            "/mcafee/service/epo/remote/epo1",
            "/mcafee/service/other/epo2",
            "/mcafee/service/epo/remote",
        )
        assert remote_identifiers(descriptor) == ["epo1"]

    def test_bare_prefix_contributes_nothing(self):
        assert remote_identifiers(remote("/mcafee/service/epo/remote/")) == []

    def test_no_channels(self):
        assert remote_identifiers(remote()) == []


class TestCommandsExtraction:
    """Test cases for "commands" metadata extraction."""

    def test_epo_guid(self):
        assert commands_identifiers(commands({"epoGuid": "epo1"})) == ["epo1"]

    @pytest.mark.parametrize("metadata", [{}, {"other": "x"}, {"epoGuid": ""}, {"epoGuid": 5}])
    def test_missing_or_unusable_guid(self, metadata):
        assert commands_identifiers(commands(metadata)) == []


class TestIdentifierExtractionService:
    """Test cases for IdentifierExtractionService."""

    def test_dedups_across_descriptors(self):
        descriptors = [
            remote("/mcafee/service/epo/remote/epo1"),
            remote("/mcafee/service/epo/remote/epo1", "/mcafee/service/epo/remote/epo2"),
        ]
        assert IdentifierExtractionService.extract(EPO_REMOTE_SERVICE_TYPE, descriptors) == [
            "epo1",
            "epo2",
        ]

    def test_dedups_commands(self):
        descriptors = [commands({"epoGuid": "epo1"}), commands({"epoGuid": "epo1"})]
        assert IdentifierExtractionService.extract(EPO_COMMANDS_SERVICE_TYPE, descriptors) == [
            "epo1"
        ]

    def test_strategy_follows_service_type(self):
        descriptor = ServiceDescriptor(
            metadata={"epoGuid": "guid1"},
            request_channels=["/mcafee/service/epo/remote/remote1"],
        )
        assert IdentifierExtractionService.extract(EPO_COMMANDS_SERVICE_TYPE, [descriptor]) == [
            "guid1"
        ]
        assert IdentifierExtractionService.extract(EPO_REMOTE_SERVICE_TYPE, [descriptor]) == [
            "remote1"
        ]

    def test_unknown_service_type(self):
        with pytest.raises(ValueError):
            IdentifierExtractionService.extract("/mcafee/service/other", [])

    def test_service_type_for(self):
        assert (
            IdentifierExtractionService.service_type_for(ServiceVariant.REMOTE)
            == EPO_REMOTE_SERVICE_TYPE
        )
        assert (
            IdentifierExtractionService.service_type_for(ServiceVariant.COMMANDS)
            == EPO_COMMANDS_SERVICE_TYPE
        )


class TestMerge:
    """Test cases for merging both variants' identifiers."""

    def test_sorted_union(self):
        result = IdentifierExtractionService.merge(["epoC", "epoA"], ["epoB", "epoA"])
        assert result.identifiers == ["epoA", "epoB", "epoC"]

    def test_remote_present_hints_remote(self):
        assert IdentifierExtractionService.merge(["epo1"], ["epo2"]).variant == (
            ServiceVariant.REMOTE
        )

    def test_only_commands_hints_commands(self):
        assert IdentifierExtractionService.merge([], ["epo2"]).variant == (
            ServiceVariant.COMMANDS
        )

    def test_empty(self):
        result = IdentifierExtractionService.merge([], [])
        assert result.identifiers == []
        assert result.variant == ServiceVariant.COMMANDS
