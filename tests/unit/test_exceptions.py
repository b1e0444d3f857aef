"""Unit tests for the exception hierarchy."""

from armada.exceptions import (
    ApplyError,
    ArmadaError,
    CleanupError,
    ConfigurationError,
    FleetError,
    ProvisioningError,
    ReadinessTimeoutError,
)


def test_details_are_appended():
    err = ConfigurationError("bad image", "use kindest/node:v1.29.2")
    assert str(err) == "bad image\n\nDetails: use kindest/node:v1.29.2"
    assert str(ArmadaError("plain")) == "plain"


def test_cluster_errors_are_prefixed_with_the_cluster():
    assert str(ProvisioningError("cl1", "kind failed")) == "cl1: kind failed"
    assert str(CleanupError("cl2", "rm failed")) == "cl2: rm failed"
    assert str(ApplyError("cl3", "DaemonSet", "weave-net", "403 Forbidden")) == (
        "cl3: failed to create DaemonSet 'weave-net': 403 Forbidden"
    )


def test_timeout_is_distinguishable_from_apply_failure():
    err = ReadinessTimeoutError("cl1", "DaemonSet kube-system/calico-node", 300, "1/3 pods ready")
    assert isinstance(err, ArmadaError)
    assert not isinstance(err, ApplyError)
    assert err.message == "cl1: DaemonSet kube-system/calico-node still not ready after 300s"


def test_fleet_error_lists_failed_clusters():
    err = FleetError("finalize", {"cl2": ProvisioningError("cl2", "x"), "cl1": ProvisioningError("cl1", "y")})
    assert err.message == "finalize failed for cluster(s): cl1, cl2"
    assert "cl1: cl1: y" in err.details
