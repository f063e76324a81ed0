# kubescore

`kubescore` reads Kubernetes object definitions from YAML files and runs a set
of checks against them. It gives each object a grade for each check, and adds
recommendations for making the object more secure and more resilient.

## Installation

```
pip install kubescore
```

## Usage

Score one or more files. Use `-` to read from standard input:

```
kube-score score deployment.yaml service.yaml
cat all.yaml | kube-score score -
```

Documents in a file are separated by `---` lines. A `v1` `List` is read item
by item.

The exit status is 1 when any check gives a critical grade. With
`--exit-one-on-warning`, warnings also give exit status 1. When a file cannot
be read or parsed, the command prints `Failed to score files: ...` to standard
error and exits with status 1.

Flags for `score`:

- `-o`, `--output-format`: `human` (the default), `json` or `ci`
- `--output-version`: for `json`, `v2` (the default) or `v1`; `human` and `ci` have only `v1`
- `-v`, `--verbose`: can be repeated; `-v` also shows checks that passed, `-vv` also shows skipped checks
- `--ignore-test ID`: turn a check off; can be repeated or given a comma separated list
- `--enable-optional-test ID`: turn an optional check on; can be repeated or given a comma separated list
- `--ignore-container-cpu-limit`, `--ignore-container-memory-limit`: do not require these limits
- `--disable-ignore-checks-annotations`: do not honour the `kube-score/ignore` annotation
- `--help`: print the flags

The `human` output colours its lines only when standard output is a terminal,
and not when `NO_COLOR` is set or `TERM` is `dumb`.

List every check as CSV (id, target type, description, `default` or
`optional`):

```
kube-score list
```

Print the version:

```
kube-score version
```

`kube-score help`, or running the command with no arguments, prints the usage
text and exits with status 1.

Installed as `kubectl-score`, the command also works as a kubectl plugin. There
`score` is the default action, so `kubectl score file.yaml` means the same as
`kubectl score score file.yaml`.

## Checks

Default checks:

- `container-resources`, `container-image-tag`, `container-image-pull-policy`,
  `container-security-context`, `pod-probes`, `pod-networkpolicy` (pods and
  every object with a pod template)
- `service-targets-pod`, `service-type`
- `deployment-has-host-podantiaffinity`, `deployment-has-poddisruptionbudget`
- `statefulset-has-host-podantiaffinity`, `statefulset-has-poddisruptionbudget`
- `networkpolicy-targets-pod`, `ingress-targets-service`, `cronjob-has-deadline`,
  `horizontalpodautoscaler-has-target`
- `label-values`, `stable-version` (every object)

Optional checks, enabled with `--enable-optional-test`:

- `container-resource-requests-equal-limits`
- `container-cpu-requests-equal-limits`
- `container-memory-requests-equal-limits`
- `container-seccomp-profile`

## Ignoring checks per object

Put a comma separated list of check ids in the `kube-score/ignore` annotation
of an object. Those checks are then reported as skipped:

```yaml
metadata:
  annotations:
    kube-score/ignore: service-type,pod-probes
```

## Library use

```python
from kubescore.config import Configuration
from kubescore.parser import parse_files
from kubescore.scoring import score
from kubescore.render.ci import ci

with open("deployment.yaml") as fp:
    config = Configuration(all_files=[fp], use_ignore_checks_annotation=True)
    card = score(parse_files(config), config)
print(ci(card))
```

`parse_files` raises `kubescore.parser.ParseError` on bad input. `score`
returns a `kubescore.scorecard.Scorecard`, a dict from object key to
`ScoredObject`. The renderers `kubescore.render.ci.ci`,
`kubescore.render.human.human` and `kubescore.render.json_v2.output` each
return a string. In a `Configuration` the annotation is honoured only when
`use_ignore_checks_annotation` is true; the command line turns it on unless
`--disable-ignore-checks-annotations` is given.

## What it does not do

- It reads files only. It does not connect to a cluster.
- It knows these kinds: `v1` Pod, Service and List; `batch/v1` Job;
  `batch/v1beta1` CronJob; Deployment in `apps/v1`, `apps/v1beta1`,
  `apps/v1beta2` and `extensions/v1beta1`; StatefulSet in `apps/v1`,
  `apps/v1beta1` and `apps/v1beta2`; DaemonSet in `apps/v1`, `apps/v1beta2`
  and `extensions/v1beta1`; `networking.k8s.io/v1` NetworkPolicy;
  `policy/v1beta1` PodDisruptionBudget; `extensions/v1beta1` Ingress;
  `autoscaling/v1` HorizontalPodAutoscaler. Other kinds are passed over
  without a score.
- The Deployment and StatefulSet checks for anti-affinity and disruption
  budgets run only on the `apps/v1` versions of those kinds.
- Parsing checks the types of the fields the checks read, not a full
  Kubernetes schema.