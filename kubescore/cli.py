"""Command line interface: score files, list checks, print the version."""

from __future__ import annotations

import argparse
import csv
import json
import os
import posixpath
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from kubescore.config import Configuration
from kubescore.parser import ParseError, empty, parse_files
from kubescore.render.ci import ci
from kubescore.render.human import human
from kubescore.render import json_v2
from kubescore.scorecard import Grade, Scorecard
from kubescore.scoring import register_all_checks, score

VERSION = "development"
COMMIT = "N/A"
DATE = "N/A"

Command = Callable[[str, List[str]], int]


def parse(args: Sequence[str], cmds: Mapping[str, Any]) -> Tuple[str, int]:
    """Pick the sub-command and the offset where its arguments start.

    Raises ValueError when nothing at all was given.
    """
    command = ""
    offset = 0

    # As a kubectl plugin "score" is the default, so "kubectl score" needs no repeat.
    if is_kubectl_plugin(exec_name(args[0])):
        command = "score"
        offset = 1

    if len(args) <= max(offset, 1):
        raise ValueError("No command, flag or file")

    if args[1] in cmds:
        command = args[1]
        offset = 2
    return command, offset


def exec_name(args0: str) -> str:
    """Name to show in help texts; "kubectl-x" becomes "kubectl x"."""
    stripped = args0.rstrip("/")
    if not args0:
        name = "."
    elif not stripped:
        name = "/"
    else:
        name = posixpath.basename(stripped)
    if name.startswith("kubectl-"):
        name = name.replace("kubectl-", "kubectl ", 1)
    return name


def is_kubectl_plugin(help_name: str) -> bool:
    return exec_name(help_name) == "kubectl score"


def get_output_version(flag_value: str, output_format: str) -> str:
    if flag_value:
        return flag_value
    return "v2" if output_format == "json" else "v1"


def version_string() -> str:
    return f"kube-score version: {VERSION}, commit: {COMMIT}, built: {DATE}"


@dataclass(frozen=True)
class _Flag:
    name: str
    help: str
    kind: str = "bool"
    short: str = ""
    default: str = ""


_HELP_FLAG = _Flag("help", "Print help")

_SCORE_FLAGS = (
    _Flag("exit-one-on-warning", "Exit with code 1 in case of warnings"),
    _Flag(
        "ignore-container-cpu-limit",
        "Disables the requirement of setting a container CPU limit",
    ),
    _Flag(
        "ignore-container-memory-limit",
        "Disables the requirement of setting a container memory limit",
    ),
    _Flag(
        "verbose",
        "Enable verbose output, can be set multiple times for increased verbosity.",
        kind="count",
        short="v",
    ),
    _HELP_FLAG,
    _Flag(
        "output-format",
        "Set to 'human', 'json' or 'ci'. If set to ci, kube-score will output the "
        "program in a format that is easier to parse by other programs.",
        kind="string",
        short="o",
        default="human",
    ),
    _Flag(
        "output-version",
        "Changes the version of the --output-format. The 'json' format has version "
        "'v2' (default) and 'v1' (deprecated, will be removed in v1.7.0). The 'human' "
        "and 'ci' formats has only version 'v1' (default). If not explicitly set, the "
        "default version for that particular output format will be used.",
        kind="string",
    ),
    _Flag(
        "enable-optional-test",
        "Enable an optional test, can be set multiple times",
        kind="stringSlice",
    ),
    _Flag("ignore-test", "Disable a test, can be set multiple times", kind="stringSlice"),
    _Flag(
        "disable-ignore-checks-annotations",
        "Set to true to disable the effect of the 'kube-score/ignore' annotations",
    ),
)


def _build_parser(bin_name: str, flags: Sequence[_Flag]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=bin_name, add_help=False, allow_abbrev=False)
    for flag in flags:
        names = [f"-{flag.short}"] if flag.short else []
        names.append(f"--{flag.name}")
        dest = flag.name.replace("-", "_")
        if flag.kind == "bool":
            parser.add_argument(*names, dest=dest, action="store_true")
        elif flag.kind == "count":
            parser.add_argument(*names, dest=dest, action="count", default=0)
        elif flag.kind == "string":
            parser.add_argument(*names, dest=dest, default=flag.default)
        else:
            parser.add_argument(*names, dest=dest, action="append", default=[])
    parser.add_argument("files", nargs="*")
    return parser


def _flag_defaults(flags: Sequence[_Flag]) -> str:
    rows = []
    for flag in flags:
        left = f"  -{flag.short}, --{flag.name}" if flag.short else f"      --{flag.name}"
        if flag.kind in ("string", "stringSlice"):
            left += " " + ("strings" if flag.kind == "stringSlice" else "string")
        help_text = flag.help
        if flag.kind == "string" and flag.default:
            help_text += f' (default "{flag.default}")'
        rows.append((left, help_text))
    width = max(len(left) for left, _ in rows) + 3
    return "".join(f"{left.ljust(width)}{text}\n" for left, text in rows)


def _print_usage(
    bin_name: str,
    action_name: str,
    display_for_more_info: bool,
    flags: Sequence[_Flag] = (),
) -> None:
    usage = (
        f"Usage of {bin_name}:\n"
        f"{bin_name} [action] --flags\n"
        "\n"
        "Actions:\n"
        "\tscore\tChecks all files in the input, and gives them a score and recommendations\n"
        "\tlist\tPrints a CSV list of all available score checks\n"
        "\tversion\tPrint the version of kube-score\n"
        "\thelp\tPrint this message\n\n"
    )
    if display_for_more_info:
        usage += (
            f'Run "{bin_name} [action] --help" for more information about a particular command'
        )
    if action_name:
        usage += f"Flags for {action_name}:"
    print(usage)
    if action_name:
        sys.stdout.write(_flag_defaults(flags))


def _split_slice(values: Sequence[str]) -> set:
    return {item for value in values for item in value.split(",") if item}


def _marshal(value: Any) -> str:
    text = json.dumps(value, indent=4, ensure_ascii=False, sort_keys=False)
    for char, escaped in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026")):
        text = text.replace(char, escaped)
    return text


def _json_v1(card: Scorecard) -> str:
    def type_meta(tm) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if tm.kind:
            data["kind"] = tm.kind
        if tm.api_version:
            data["apiVersion"] = tm.api_version
        return data

    def object_meta(om) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if om.name:
            data["name"] = om.name
        if om.namespace:
            data["namespace"] = om.namespace
        data["creationTimestamp"] = None
        if om.labels:
            data["labels"] = dict(om.labels)
        if om.annotations:
            data["annotations"] = dict(om.annotations)
        return data

    def test_score(ts) -> Dict[str, Any]:
        check = ts.check
        comments = [
            {"Path": c.path, "Summary": c.summary, "Description": c.description}
            for c in ts.comments
        ]
        return {
            "Check": {
                "Name": check.name,
                "ID": check.id,
                "TargetType": getattr(check.target_type, "value", check.target_type),
                "Comment": check.comment,
                "Optional": check.optional,
            },
            "Grade": int(ts.grade),
            "Skipped": ts.skipped,
            "Comments": comments or None,
        }

    data = {
        key: {
            "TypeMeta": type_meta(obj.type_meta),
            "ObjectMeta": object_meta(obj.object_meta),
            "Checks": [test_score(ts) for ts in obj.checks],
        }
        for key, obj in sorted(card.items())
    }
    return _marshal(data)


def _terminal_width() -> int:
    try:
        return os.get_terminal_size(sys.stdin.fileno()).columns
    except (OSError, ValueError, AttributeError):
        return 80


def score_files(bin_name: str, args: Sequence[str]) -> int:
    """Score the given files and print the result; returns the exit code.

    Raises ValueError for bad usage and lets parse and file errors through.
    """
    opts = _build_parser(bin_name, _SCORE_FLAGS).parse_intermixed_args(list(args))

    if opts.help:
        _print_usage(bin_name, "score", False, _SCORE_FLAGS)
        return 0

    if opts.output_format not in ("human", "ci", "json"):
        _print_usage(bin_name, "score", False, _SCORE_FLAGS)
        raise ValueError("Error: --output-format must be set to: 'human', 'json' or 'ci'")

    if not opts.files:
        raise ValueError(
            "Error: No files given as arguments.\n\n"
            f"Usage: {exec_name(bin_name)} score [--flag1 --flag2] file1 file2 ...\n\n"
            'Use "-" as filename to read from STDIN.'
        )

    with ExitStack() as stack:
        streams = [
            sys.stdin if name == "-" else stack.enter_context(open(name, encoding="utf-8"))
            for name in opts.files
        ]
        config = Configuration(
            all_files=streams,
            verbose_output=opts.verbose,
            ignore_container_cpu_limit_requirement=opts.ignore_container_cpu_limit,
            ignore_container_memory_limit_requirement=opts.ignore_container_memory_limit,
            ignored_tests=_split_slice(opts.ignore_test),
            enabled_optional_tests=_split_slice(opts.enable_optional_test),
            use_ignore_checks_annotation=not opts.disable_ignore_checks_annotations,
        )
        parsed = parse_files(config)

    card = score(parsed, config)

    if card.any_below_or_equal_to_grade(Grade.CRITICAL):
        exit_code = 1
    elif opts.exit_one_on_warning and card.any_below_or_equal_to_grade(Grade.WARNING):
        exit_code = 1
    else:
        exit_code = 0

    version = get_output_version(opts.output_version, opts.output_format)
    renderers = {
        ("json", "v1"): lambda: _json_v1(card),
        ("json", "v2"): lambda: json_v2.output(card),
        ("human", "v1"): lambda: human(card, opts.verbose, _terminal_width()),
        ("ci", "v1"): lambda: ci(card),
    }
    render = renderers.get((opts.output_format, version))
    if render is None:
        raise ValueError("error: Unknown --output-format or --output-version")

    sys.stdout.write(render())
    return exit_code


def list_checks(bin_name: str, args: Sequence[str]) -> int:
    """Print every known check as CSV: id, target type, comment, default/optional."""
    opts = _build_parser(bin_name, (_HELP_FLAG,)).parse_intermixed_args(list(args))
    if opts.help:
        _print_usage(bin_name, "list", False, (_HELP_FLAG,))
        return 0

    all_checks = register_all_checks(empty(), Configuration())
    writer = csv.writer(sys.stdout, lineterminator="\n")
    for check in all_checks.all():
        writer.writerow(
            [
                check.id,
                getattr(check.target_type, "value", check.target_type),
                check.comment,
                "optional" if check.optional else "default",
            ]
        )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    if argv is None:
        args = list(sys.argv)
    else:
        args = [sys.argv[0] if sys.argv else "kube-score", *argv]
    help_name = exec_name(args[0])

    def run_score(name: str, rest: List[str]) -> int:
        try:
            return score_files(name, rest)
        except (OSError, ValueError, ParseError, yaml.YAMLError) as exc:
            print(f"Failed to score files: {exc}", file=sys.stderr)
            return 1

    def run_version(name: str, rest: List[str]) -> int:
        print(version_string())
        return 0

    def run_help(name: str, rest: List[str]) -> int:
        _print_usage(help_name, "", True)
        return 1

    cmds: Dict[str, Command] = {
        "score": run_score,
        "list": list_checks,
        "version": run_version,
        "help": run_help,
    }

    try:
        command, offset = parse(args, cmds)
    except ValueError:
        _print_usage(help_name, "", True)
        return 1

    handler = cmds.get(command, run_help)
    return handler(help_name, args[offset:])


if __name__ == "__main__":
    sys.exit(main())