import pytest

from gpushare_config.consts import ConfigError
from gpushare_config.replicas import (
    ReplicatedDeviceRef,
    ReplicatedDevices,
    ReplicatedResource,
    ReplicatedResources,
)
from gpushare_config.resources import ResourceName

GPU_UUID = "GPU-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c"


def rn(name):
    return ResourceName.create(name)


class _Recorder:
    def __init__(self):
        self.messages = []

    def warning(self, msg, *args):
        self.messages.append(msg % args)


@pytest.mark.parametrize(
    "value, kind",
    [
        ("0", "gpuIndex"),
        ("0:0", "migIndex"),
        ("GPU-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c", "uuid"),
        ("MIG-3eb87630-93d5-b2b6-b8ff-9b359caf4ee2", "uuid"),
        ("MIG-GPU-662077db-fa3f-0d8f-9502-21ab0ef058a2/10/0", "uuid"),
    ],
)
def test_replicated_device_ref(value, kind):
    ref = ReplicatedDeviceRef(value)
    assert ref.is_gpu_index() == (kind == "gpuIndex")
    assert ref.is_mig_index() == (kind == "migIndex")
    assert ref.is_uuid() == (kind == "uuid")


def test_mig_uuid_requires_gpu_uuid_and_indices():
    assert not ReplicatedDeviceRef("MIG-GPU-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c").is_mig_uuid()
    assert not ReplicatedDeviceRef("MIG-GPU-UUID/0/0").is_mig_uuid()
    assert not ReplicatedDeviceRef(GPU_UUID).is_mig_uuid()


def test_mig_index_rejects_three_parts():
    assert not ReplicatedDeviceRef("0:0:0").is_mig_index()


@pytest.mark.parametrize(
    "devices, expected",
    [
        (ReplicatedDevices(all=True), "all"),
        (ReplicatedDevices(count=2), 2),
        (
            ReplicatedDevices(list=["0", "0:0", GPU_UUID]),
            ["0", "0:0", GPU_UUID],
        ),
    ],
)
def test_marshal_replicated_devices(devices, expected):
    assert devices.to_json() == expected


def test_marshal_empty_replicated_devices_fails():
    with pytest.raises(ConfigError):
        ReplicatedDevices().to_json()


@pytest.mark.parametrize(
    "value",
    [
        None,
        "not-all",
        -2,
        2.0,
        [-1],
        ["-1"],
        ["invalid-UUID"],
        ["GPU-UUID"],
        ["MIG-UUID"],
        ["MIG-GPU-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c"],
        True,
        {"all": True},
    ],
)
def test_unmarshal_replicated_devices_errors(value):
    with pytest.raises(ConfigError):
        ReplicatedDevices.from_json(value)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("all", ReplicatedDevices(all=True)),
        (2, ReplicatedDevices(count=2)),
        ([0], ReplicatedDevices(list=["0"])),
        (["0"], ReplicatedDevices(list=["0"])),
        (["0:0"], ReplicatedDevices(list=["0:0"])),
        ([GPU_UUID], ReplicatedDevices(list=[GPU_UUID])),
        (
            ["MIG-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c"],
            ReplicatedDevices(list=["MIG-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c"]),
        ),
        (
            ["MIG-GPU-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c/0/0"],
            ReplicatedDevices(list=["MIG-GPU-4cf8db2d-06c0-7d70-1a51-e59b25b2c16c/0/0"]),
        ),
        (
            [0, "0:0", GPU_UUID],
            ReplicatedDevices(list=["0", "0:0", GPU_UUID]),
        ),
        (
            ["0", "0:0", GPU_UUID],
            ReplicatedDevices(list=["0", "0:0", GPU_UUID]),
        ),
    ],
)
def test_unmarshal_replicated_devices(value, expected):
    assert ReplicatedDevices.from_json(value) == expected


def test_replicated_devices_round_trip():
    devices = ReplicatedDevices(list=["0", "0:0", GPU_UUID])
    assert ReplicatedDevices.from_json(devices.to_json()) == devices


@pytest.mark.parametrize(
    "data",
    [
        None,
        {},
        {"name": "valid"},
        {"name": "valid", "devices": "all"},
        {"name": "valid", "devices": "all", "rename": "valid-shared"},
        {"name": "valid", "replicas": -1},
        {"name": "valid", "replicas": 0},
        {"name": "$invalid$", "replicas": 2, "rename": "valid-shared"},
        {"name": "valid", "replicas": 2, "rename": "$invalid$"},
    ],
)
def test_unmarshal_replicated_resource_errors(data):
    with pytest.raises(ConfigError):
        ReplicatedResource.from_json(data)


@pytest.mark.parametrize(
    "data, expected",
    [
        (
            {"name": "valid", "devices": "all", "replicas": 2},
            ReplicatedResource(name=rn("valid"), devices=ReplicatedDevices(all=True), replicas=2),
        ),
        (
            {"name": "valid", "devices": "all", "replicas": 2, "rename": "valid-shared"},
            ReplicatedResource(
                name=rn("valid"),
                devices=ReplicatedDevices(all=True),
                replicas=2,
                rename=rn("valid-shared"),
            ),
        ),
        (
            {"name": "valid", "replicas": 2},
            ReplicatedResource(name=rn("valid"), devices=ReplicatedDevices(all=True), replicas=2),
        ),
        (
            {"name": "valid", "replicas": 2, "rename": "valid-shared"},
            ReplicatedResource(
                name=rn("valid"),
                devices=ReplicatedDevices(all=True),
                replicas=2,
                rename=rn("valid-shared"),
            ),
        ),
    ],
)
def test_unmarshal_replicated_resource(data, expected):
    assert ReplicatedResource.from_json(data) == expected


def test_replicated_resource_round_trip():
    resource = ReplicatedResource(
        name=rn("valid"),
        devices=ReplicatedDevices(count=2),
        replicas=4,
        rename=rn("valid-shared"),
    )
    assert ReplicatedResource.from_json(resource.to_json()) == resource


@pytest.mark.parametrize(
    "data",
    [
        None,
        {},
        {"resources": []},
        {"resources": [{"name": "$invalid$", "replicas": 2}]},
    ],
)
def test_unmarshal_replicated_resources_errors(data):
    with pytest.raises(ConfigError):
        ReplicatedResources.from_json(data)


def test_unmarshal_replicated_resources_single():
    result = ReplicatedResources.from_json({"resources": [{"name": "valid", "replicas": 2}]})
    assert result == ReplicatedResources(
        resources=[
            ReplicatedResource(name=rn("valid"), devices=ReplicatedDevices(all=True), replicas=2)
        ]
    )


def test_unmarshal_replicated_resources_multiple():
    result = ReplicatedResources.from_json(
        {
            "resources": [
                {"name": "valid1", "replicas": 2},
                {"name": "valid2", "replicas": 2},
            ]
        }
    )
    assert result == ReplicatedResources(
        resources=[
            ReplicatedResource(name=rn("valid1"), devices=ReplicatedDevices(all=True), replicas=2),
            ReplicatedResource(name=rn("valid2"), devices=ReplicatedDevices(all=True), replicas=2),
        ]
    )


def test_rename_by_default_fills_in_shared_name():
    result = ReplicatedResources.from_json(
        {"renameByDefault": True, "resources": [{"name": "gpu", "replicas": 2}]}
    )
    assert result.resources[0].rename == rn("gpu").default_shared_rename()


def test_replicated_resources_round_trip():
    original = ReplicatedResources.from_json(
        {
            "renameByDefault": True,
            "failRequestsGreaterThanOne": True,
            "resources": [{"name": "gpu", "replicas": 3, "devices": [0, "1"]}],
        }
    )
    assert ReplicatedResources.from_json(original.to_json()) == original


def test_is_replicated():
    assert not ReplicatedResources().is_replicated()
    rrs = ReplicatedResources.from_json({"resources": [{"name": "gpu", "replicas": 2}]})
    assert rrs.is_replicated()


def test_disable_renaming_without_rename_by_default():
    rrs = ReplicatedResources.from_json(
        {"resources": [{"name": "gpu", "replicas": 2, "rename": "other", "devices": 2}]}
    )
    recorder = _Recorder()
    rrs.disable_resource_renaming(recorder, "timeSlicing")
    assert rrs.resources[0].rename == ""
    assert rrs.resources[0].devices == ReplicatedDevices(all=True)
    assert len(recorder.messages) == 2
    assert all("sharing.timeSlicing.resources" in m for m in recorder.messages)


def test_disable_renaming_with_rename_by_default():
    rrs = ReplicatedResources.from_json(
        {
            "renameByDefault": True,
            "resources": [{"name": "gpu", "replicas": 2, "rename": "other"}],
        }
    )
    recorder = _Recorder()
    rrs.disable_resource_renaming(recorder, "mps")
    assert rrs.resources[0].rename == rn("gpu").default_shared_rename()
    assert len(recorder.messages) == 1
    assert "sharing.mps.resources" in recorder.messages[0]


def test_disable_renaming_on_defaults_is_silent():
    rrs = ReplicatedResources.from_json({"resources": [{"name": "gpu", "replicas": 2}]})
    recorder = _Recorder()
    rrs.disable_resource_renaming(recorder, "mps")
    assert recorder.messages == []
    assert rrs.resources[0].rename == ""