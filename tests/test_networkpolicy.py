import pytest

from kubescore.checks.networkpolicy import (
    network_policy_targets_pod,
    pod_has_network_policy,
    register,
)
from kubescore.domain import ObjectMeta, PodSpecer, TypeMeta
from kubescore.parser import empty
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade


def _netpol(selector_val, policy_types=None, ingress=None, egress=None, namespace=""):
    spec = {"podSelector": {"matchLabels": {"test": selector_val}}}
    if policy_types is not None:
        spec["policyTypes"] = policy_types
    if ingress is not None:
        spec["ingress"] = ingress
    if egress is not None:
        spec["egress"] = egress
    return {"metadata": {"name": "np", "namespace": namespace}, "spec": spec}


def _pod_template(labels, namespace=""):
    return {"metadata": {"labels": labels, "namespace": namespace}, "spec": {}}


@pytest.mark.parametrize(
    "policy_types, ingress, egress, selector_val, expected",
    [
        (["Ingress"], None, None, "test-a", Grade.WARNING),
        (["Egress"], None, None, "test-a", Grade.WARNING),
        (["Egress", "Ingress"], None, None, "test-a", Grade.ALL_OK),
        ([], None, None, "test-a", Grade.WARNING),
        (None, None, None, "test-a", Grade.WARNING),
        ([], None, [{}, {}], "test-a", Grade.ALL_OK),
        ([], [{}, {}], None, "test-a", Grade.WARNING),
        ([], [{}, {}], [{}, {}], "test-a", Grade.ALL_OK),
        (None, [{}, {}], [{}, {}], "test-a", Grade.ALL_OK),
        (["Egress", "Ingress"], None, None, "test-not-matching", Grade.CRITICAL),
    ],
)
def test_pod_has_network_policy(policy_types, ingress, egress, selector_val, expected):
    fn = pod_has_network_policy([_netpol(selector_val, policy_types, ingress, egress)])
    score = fn(_pod_template({"test": "test-a"}), TypeMeta())
    assert score.grade == expected


def test_pod_missing_egress_comment():
    fn = pod_has_network_policy([_netpol("test-a", ["Ingress"])])
    score = fn(_pod_template({"test": "test-a"}), TypeMeta())
    assert [c.summary for c in score.comments] == [
        "The pod does not have a matching egress network policy"
    ]


def test_pod_network_policy_namespace():
    fn = pod_has_network_policy([_netpol("test-a", ["Ingress", "Egress"], namespace="ns")])
    assert fn(_pod_template({"test": "test-a"}, "ns"), TypeMeta()).grade == Grade.ALL_OK
    assert fn(_pod_template({"test": "test-a"}, "other"), TypeMeta()).grade == Grade.CRITICAL


def test_netpol_targets_pod():
    pods = [{"metadata": {"name": "p", "labels": {"test": "test-a"}}, "spec": {}}]
    fn = network_policy_targets_pod(pods, [])
    assert fn(_netpol("test-a")).grade == Grade.ALL_OK


def test_netpol_targets_pod_in_deployment():
    podspecer = PodSpecer(
        TypeMeta("apps/v1", "Deployment"),
        ObjectMeta(name="d", namespace="ns"),
        _pod_template({"test": "test-a"}, "ns"),
    )
    fn = network_policy_targets_pod([], [podspecer])
    assert fn(_netpol("test-a", namespace="ns")).grade == Grade.ALL_OK
    assert fn(_netpol("test-a", namespace="other")).grade == Grade.CRITICAL


def test_netpol_targets_pod_not_matching():
    pods = [{"metadata": {"name": "p", "labels": {"test": "test-b"}}, "spec": {}}]
    score = network_policy_targets_pod(pods, [])(_netpol("test-a"))
    assert score.grade == Grade.CRITICAL
    assert score.comments[0].summary == "The NetworkPolicys selector doesn't match any pods"


def test_empty_selector_targets_every_pod():
    pods = [{"metadata": {"name": "p", "labels": {"x": "y"}}, "spec": {}}]
    netpol = {"metadata": {}, "spec": {}}
    assert network_policy_targets_pod(pods, [])(netpol).grade == Grade.ALL_OK


def test_register():
    checks = Checks()
    register(checks, empty())
    assert [c.check.id for c in checks.for_target(TargetType.POD)] == ["pod-networkpolicy"]
    assert [c.check.id for c in checks.for_target(TargetType.NETWORK_POLICY)] == [
        "networkpolicy-targets-pod"
    ]