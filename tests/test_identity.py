"""Tests for the instance identity snapshot."""

import dataclasses
import string

import pytest

from podprobe.identity import capture_identity, info_timestamp, new_instance_id, resolve
from podprobe.runtime import machine_name


def test_resolve_prefers_environment():
    assert resolve("POD_IP", "unknown-ip", {"POD_IP": "10.0.0.5"}) == "10.0.0.5"


def test_resolve_falls_back_when_unset():
    assert resolve("POD_IP", "unknown-ip", {}) == "unknown-ip"


def test_resolve_keeps_empty_value():
    assert resolve("NAMESPACE", "default", {"NAMESPACE": ""}) == ""


def test_capture_identity_fallbacks():
    identity = capture_identity({})
    assert identity.pod_name == "unknown-pod"
    assert identity.node_name == machine_name()
    assert identity.pod_ip == "unknown-ip"
    assert identity.namespace == "default"


def test_capture_identity_reads_downward_api_values():
    env = {"HOSTNAME": "web-1", "NODE_NAME": "node-9", "POD_IP": "10.1.2.3", "NAMESPACE": "demo"}
    identity = capture_identity(env)
    assert (identity.pod_name, identity.node_name, identity.pod_ip, identity.namespace) == (
        "web-1",
        "node-9",
        "10.1.2.3",
        "demo",
    )


def test_instance_id_is_short_hex_token():
    instance_id = new_instance_id()
    assert len(instance_id) == 8
    assert set(instance_id) <= set(string.hexdigits.lower())


def test_each_capture_gets_a_fresh_instance_id():
    ids = {capture_identity({}).instance_id for _ in range(20)}
    assert len(ids) == 20


def test_identity_is_immutable():
    identity = capture_identity({})
    with pytest.raises(dataclasses.FrozenInstanceError):
        identity.instance_id = "changed!"


def test_info_timestamp_format():
    stamp = info_timestamp()
    assert stamp.endswith(" UTC")
    assert len(stamp) == len("2024-01-31 12:00:00 UTC")
