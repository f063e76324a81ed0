import json

from kubescore.domain import Check, ObjectMeta, TypeMeta
from kubescore.render.json_v2 import output
from kubescore.scorecard import Grade, Scorecard, ScoredObject, TestScore, TestScoreComment


def _card():
    card = Scorecard()
    card["Testing/v1/foofoo/foo"] = ScoredObject(
        type_meta=TypeMeta(api_version="v1", kind="Testing"),
        object_meta=ObjectMeta(name="foo", namespace="foofoo", labels={"app": "foo"}),
        checks=[
            TestScore(
                check=Check(name="Service Type", id="service-type", target_type="Service"),
                grade=Grade.WARNING,
                comments=[TestScoreComment("a", "summary", "description")],
            ),
            TestScore(check=Check(name="skip", id="skip"), skipped=True),
        ],
    )
    card["Testing/v1//bar"] = ScoredObject(
        type_meta=TypeMeta(api_version="v1", kind="Testing"),
        object_meta=ObjectMeta(name="bar"),
    )
    return card


def test_empty_scorecard_is_null():
    assert output(Scorecard()) == "null"


def test_objects_are_listed_with_names():
    data = json.loads(output(_card()))
    assert sorted(o["object_name"] for o in data) == sorted(_card())


def test_metadata_fields():
    data = {o["object_name"]: o for o in json.loads(output(_card()))}
    foo = data["Testing/v1/foofoo/foo"]
    assert foo["type_meta"] == {"kind": "Testing", "apiVersion": "v1"}
    assert foo["object_meta"] == {
        "name": "foo",
        "namespace": "foofoo",
        "creationTimestamp": None,
        "labels": {"app": "foo"},
    }
    bar = data["Testing/v1//bar"]
    assert bar["checks"] is None
    assert bar["object_meta"] == {"name": "bar", "creationTimestamp": None}


def test_checks_round_trip():
    data = {o["object_name"]: o for o in json.loads(output(_card()))}
    checks = data["Testing/v1/foofoo/foo"]["checks"]
    assert checks[0] == {
        "check": {
            "name": "Service Type",
            "id": "service-type",
            "target_type": "Service",
            "comment": "",
            "optional": False,
        },
        "grade": int(Grade.WARNING),
        "skipped": False,
        "comments": [{"path": "a", "summary": "summary", "description": "description"}],
    }
    assert checks[1]["skipped"] is True
    assert checks[1]["comments"] is None


def test_uses_four_space_indent():
    text = output(_card())
    assert text.startswith("[\n    {\n        \"object_name\"")


def test_html_characters_are_escaped():
    card = Scorecard()
    card["k"] = ScoredObject(object_meta=ObjectMeta(name="a<b>&c"))
    text = output(card)
    assert "<" not in text and ">" not in text and "&" not in text
    assert json.loads(text)[0]["object_meta"]["name"] == "a<b>&c"