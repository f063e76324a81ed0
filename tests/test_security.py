import pytest

from kubescore.checks.security import (
    container_security_context,
    pod_seccomp_profile,
    register,
)
from kubescore.domain import TypeMeta
from kubescore.registry import Checks, TargetType
from kubescore.scorecard import Grade, TestScoreComment

NO_CONTEXT = TestScoreComment(
    "foobar",
    "Container has no configured security context",
    "Set securityContext to run the container in a more secure context.",
)
WRITABLE = TestScoreComment(
    "foobar",
    "The pod has a container with a writable root filesystem",
    "Set securityContext.readOnlyRootFilesystem to true",
)
PRIVILEGED = TestScoreComment(
    "foobar",
    "The container is privileged",
    "Set securityContext.privileged to false",
)
LOW_USER = TestScoreComment(
    "foobar",
    "The container is running with a low user ID",
    "A userid above 10 000 is recommended to avoid conflicts with the host. "
    "Set securityContext.runAsUser to a value > 10000",
)
LOW_GROUP = TestScoreComment(
    "foobar",
    "The container running with a low group ID",
    "A groupid above 10 000 is recommended to avoid conflicts with the host. "
    "Set securityContext.runAsGroup to a value > 10000",
)

GOOD = {
    "readOnlyRootFilesystem": True,
    "runAsGroup": 23000,
    "runAsUser": 33000,
    "runAsNonRoot": True,
    "privileged": False,
}


def _template(ctx=None, pod_ctx=None):
    container = {"name": "foobar"}
    if ctx is not None:
        container["securityContext"] = ctx
    spec = {"containers": [container]}
    if pod_ctx is not None:
        spec["securityContext"] = pod_ctx
    return {"spec": spec}


@pytest.mark.parametrize(
    "ctx, pod_ctx, grade, comment",
    [
        (None, None, Grade.CRITICAL, NO_CONTEXT),
        (GOOD, None, Grade.ALL_OK, None),
        ({"readOnlyRootFilesystem": False}, None, Grade.CRITICAL, WRITABLE),
        ({}, None, Grade.CRITICAL, PRIVILEGED),
        ({}, None, Grade.CRITICAL, WRITABLE),
        ({}, None, Grade.CRITICAL, LOW_USER),
        ({}, None, Grade.CRITICAL, LOW_GROUP),
        (
            {"readOnlyRootFilesystem": True, "runAsNonRoot": True, "privileged": False},
            {"runAsUser": 20000, "runAsGroup": 20000},
            Grade.ALL_OK,
            None,
        ),
        (
            {
                "readOnlyRootFilesystem": True,
                "runAsNonRoot": True,
                "privileged": False,
                "runAsUser": 4,
                "runAsGroup": 5,
            },
            {"runAsUser": 20000, "runAsGroup": 20000},
            Grade.CRITICAL,
            LOW_GROUP,
        ),
    ],
)
def test_pod_security_context(ctx, pod_ctx, grade, comment):
    score = container_security_context(_template(ctx, pod_ctx), TypeMeta("apps/v1", "StatefulSet"))
    assert score.grade == grade
    if comment is not None:
        assert comment in score.comments


def test_all_good_has_no_comments():
    score = container_security_context(_template(GOOD), TypeMeta())
    assert score.grade == Grade.ALL_OK
    assert score.comments == []


def test_privileged_container():
    ctx = dict(GOOD, privileged=True)
    score = container_security_context(_template(ctx), TypeMeta())
    assert score.grade == Grade.CRITICAL
    assert [c.summary for c in score.comments] == ["The container is privileged"]


def test_low_user_id():
    ctx = dict(GOOD, runAsUser=1000)
    score = container_security_context(_template(ctx), TypeMeta())
    assert score.grade == Grade.CRITICAL
    assert [c.summary for c in score.comments] == ["The container is running with a low user ID"]


def test_low_group_id():
    ctx = dict(GOOD, runAsGroup=1000)
    score = container_security_context(_template(ctx), TypeMeta())
    assert score.grade == Grade.CRITICAL
    assert [c.summary for c in score.comments] == ["The container running with a low group ID"]


def test_inherited_from_pod_context_when_container_has_none():
    pod_ctx = {"runAsUser": 20000, "runAsGroup": 20000}
    score = container_security_context(_template(None, pod_ctx), TypeMeta())
    assert score.grade == Grade.CRITICAL
    summaries = [c.summary for c in score.comments]
    assert "The container is running with a low user ID" not in summaries
    assert "The container is privileged" in summaries


def test_input_not_modified():
    ctx = {"readOnlyRootFilesystem": True, "privileged": False}
    container_security_context(_template(ctx, {"runAsUser": 20000, "runAsGroup": 20000}), TypeMeta())
    assert ctx == {"readOnlyRootFilesystem": True, "privileged": False}


def test_init_containers_are_checked():
    template = {
        "spec": {
            "initContainers": [{"name": "init"}],
            "containers": [{"name": "foobar", "securityContext": GOOD}],
        }
    }
    score = container_security_context(template, TypeMeta())
    assert score.grade == Grade.CRITICAL
    assert [c.path for c in score.comments] == ["init"]


def test_seccomp_missing():
    score = pod_seccomp_profile({"metadata": {"name": "p"}, "spec": {}}, TypeMeta())
    assert score.grade == Grade.WARNING
    assert score.comments[0].path == "p"
    assert score.comments[0].summary == "The pod has not configured Seccomp for its containers"


def test_seccomp_annotated():
    template = {
        "metadata": {
            "annotations": {"seccomp.security.alpha.kubernetes.io/defaultProfileName": "runtime/default"}
        }
    }
    score = pod_seccomp_profile(template, TypeMeta())
    assert score.grade == Grade.ALL_OK
    assert score.comments == []


def test_register_seccomp_is_optional():
    checks = Checks()
    register(checks)
    assert [c.id for c in checks.for_target(TargetType.POD)] == [] or [
        r.check.id for r in checks.for_target(TargetType.POD)
    ] == ["container-security-context"]
    assert [(c.id, c.optional) for c in checks.all()] == [
        ("container-security-context", False),
        ("container-seccomp-profile", True),
    ]