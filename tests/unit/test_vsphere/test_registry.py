# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for EndpointRegistry lookups and the server selection list."""
from __future__ import annotations

import threading
from unittest.mock import patch

import pytest

from vsbuild.core.exceptions import ConfigurationError, ResolutionError
from vsbuild.vsphere.endpoint import SELECTABLE_SERVER_NAME, EndpointConfig
from vsbuild.vsphere.registry import EndpointRegistry, server_name_choices


@pytest.mark.unit
class TestLookup:
    def test_by_name(self, registry, vc_east):
        assert registry.get_by_name("vc-east") is vc_east
        assert registry.get_by_name("nope") is None
        assert registry.get_by_name(None) is None

    def test_by_hash(self, registry, vc_west):
        assert registry.get_by_hash(vc_west.hash) is vc_west
        assert registry.get_by_hash(vc_west.hash + 1) is None

    def test_require_raises_resolution_error(self, registry):
        with pytest.raises(ResolutionError, match="not found"):
            registry.require_by_name("nope")
        with pytest.raises(ResolutionError) as ei:
            registry.require_by_hash(42)
        assert ei.value.context["server_hash"] == 42

    def test_contains_and_len(self, registry):
        assert "vc-east" in registry
        assert len(registry) == 2


@pytest.mark.unit
class TestMutation:
    def test_duplicate_name_rejected(self, registry, vc_east):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            registry.register(vc_east)

    def test_sentinel_name_rejected(self):
        with pytest.raises(ConfigurationError, match="reserved"):
            EndpointRegistry([EndpointConfig(name=SELECTABLE_SERVER_NAME, host="h")])

    def test_rename_keeps_hash_lookup(self, registry, vc_east):
        registry.rename("vc-east", "east")
        assert registry.get_by_name("vc-east") is None
        assert registry.get_by_hash(vc_east.hash).name == "east"

    def test_rename_onto_existing_rejected(self, registry):
        with pytest.raises(ConfigurationError):
            registry.rename("vc-east", "vc-west")

    def test_rename_missing(self, registry):
        with pytest.raises(ResolutionError):
            registry.rename("nope", "x")

    def test_remove(self, registry, vc_east):
        assert registry.remove("vc-east") is vc_east
        assert registry.remove("vc-east") is None
        assert registry.get_by_hash(vc_east.hash) is None

    def test_replace_changes_hash(self, registry, vc_east):
        registry.replace(EndpointConfig(name="vc-east", host="elsewhere.example.com", user="builder", password="p"))
        assert registry.get_by_hash(vc_east.hash) is None

    def test_concurrent_reads_during_writes(self, registry, vc_west):
        stop = threading.Event()
        failures = []

        def _reader():
            while not stop.is_set():
                if registry.get_by_hash(vc_west.hash) is not vc_west:
                    failures.append("lost vc-west")

        readers = [threading.Thread(target=_reader) for _ in range(4)]
        for t in readers:
            t.start()
        for i in range(200):
            registry.register(EndpointConfig(name=f"tmp-{i}", host=f"h{i}"))
            registry.remove(f"tmp-{i}")
        stop.set()
        for t in readers:
            t.join()
        assert failures == []


@pytest.mark.unit
class TestHashUniqueness:
    def _same_host_as(self, ep, name, **kw):
        return EndpointConfig(name=name, host=ep.host, user=ep.user, port=ep.port, **kw)

    def test_second_name_for_same_server_rejected(self, registry, vc_east):
        twin = self._same_host_as(vc_east, "vc-east-insecure", password="other", insecure=True)
        assert twin.hash == vc_east.hash

        with pytest.raises(ConfigurationError, match="same host") as ei:
            registry.register(twin)

        assert ei.value.context["existing"] == "vc-east"
        assert "vc-east-insecure" not in registry
        assert registry.get_by_hash(vc_east.hash) is vc_east

    def test_replace_onto_another_servers_hash_rejected(self, registry, vc_east, vc_west):
        with pytest.raises(ConfigurationError, match="same host"):
            registry.replace(self._same_host_as(vc_west, "vc-east", password="p"))
        assert registry.get_by_name("vc-east") is vc_east

    def test_replace_same_name_may_keep_hash(self, registry, vc_east):
        rotated = self._same_host_as(vc_east, "vc-east", password="rotated")
        registry.replace(rotated)
        assert registry.get_by_hash(vc_east.hash) is rotated

    def test_from_config_rejects_twins(self):
        with pytest.raises(ConfigurationError, match="same host"):
            EndpointRegistry.from_config(
                {
                    "clouds": [
                        {"name": "vc-a", "host": "vc.example.com", "user": "u", "password": "pa"},
                        {"name": "vc-b", "host": "VC.example.com", "user": "u", "password": "pb", "insecure": True},
                    ]
                }
            )

    def test_every_name_keeps_a_distinct_hash(self, registry):
        registry.register(EndpointConfig(name="vc-lab", host="vcenter-lab.example.com", user="builder"))
        registry.register(EndpointConfig(name="vc-lab-ops", host="vcenter-lab.example.com", user="ops"))
        registry.rename("vc-west", "vc-west-2")
        registry.replace(EndpointConfig(name="vc-east", host="vcenter-east.example.com", user="builder", port=8443))

        hashes = [registry.get_by_name(n).hash for n in registry.names()]
        assert len(set(hashes)) == len(hashes)
        for name in registry.names():
            assert registry.get_by_hash(registry.get_by_name(name).hash).name == name


@pytest.mark.unit
class TestFromConfig:
    def test_builds_from_clouds(self):
        reg = EndpointRegistry.from_config(
            {"clouds": [{"name": "a", "host": "a.example.com"}, {"name": "b", "host": "b.example.com"}]}
        )
        assert reg.names() == ["a", "b"]

    def test_empty(self):
        assert len(EndpointRegistry.from_config({})) == 0

    @pytest.mark.parametrize("clouds", [{"name": "a"}, ["a"]])
    def test_bad_shapes(self, clouds):
        with pytest.raises(ConfigurationError):
            EndpointRegistry.from_config({"clouds": clouds})


@pytest.mark.unit
class TestServerNameChoices:
    def test_names_then_sentinel(self, registry):
        assert server_name_choices(registry) == ["vc-east", "vc-west", SELECTABLE_SERVER_NAME]

    def test_empty_registry_has_no_sentinel(self):
        assert server_name_choices(EndpointRegistry()) == []

    def test_failure_gives_empty_list(self, registry):
        with patch.object(EndpointRegistry, "names", side_effect=RuntimeError("registry unavailable")):
            assert server_name_choices(registry) == []
