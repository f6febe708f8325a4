"""Filter JUnit files down to test cases whose names match a pattern, merging inputs."""

from __future__ import annotations

import argparse
import re
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}


@dataclass
class JUnitCase:
    """One test case; ``skipped`` is None when the case has no <skipped> element."""

    name: str = ""
    time: str = ""
    system_out: str = ""
    failure: str = ""
    skipped: str | None = None

    @property
    def is_skipped(self) -> bool:
        return self.skipped is not None


@dataclass
class JUnitSuite:
    """A test suite holding the test cases that are passed through."""

    cases: list[JUnitCase] = field(default_factory=list)


def _char_data(element: ET.Element) -> str:
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    return "".join(parts)


def _last_text(element: ET.Element, tag: str) -> str | None:
    found = element.findall(tag)
    return _char_data(found[-1]) if found else None


def _parse_case(element: ET.Element) -> JUnitCase:
    return JUnitCase(
        name=element.get("name", ""),
        time=element.get("time", ""),
        system_out=_last_text(element, "system-out") or "",
        failure=_last_text(element, "failure") or "",
        skipped=_last_text(element, "skipped"),
    )


def parse_junit(data: bytes | str) -> JUnitSuite:
    """Parse a JUnit document with a <testsuite> or <testsuites> root; raise ValueError otherwise."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ValueError(f"invalid JUnit XML: {exc}") from exc
    if root.tag == "testsuite":
        suites = [root]
    elif root.tag == "testsuites":
        suites = root.findall("testsuite")
    else:
        raise ValueError(f"expected element type <testsuite> but have <{root.tag}>")
    return JUnitSuite(
        cases=[_parse_case(case) for suite in suites for case in suite.findall("testcase")]
    )


def filter_cases(cases: Iterable[JUnitCase], pattern: str | re.Pattern[str]) -> list[JUnitCase]:
    """Keep cases whose name matches; one case per name, a real run replacing a skipped one."""
    regex = re.compile(pattern)
    kept: dict[str, JUnitCase] = {}
    for case in cases:
        if not regex.search(case.name):
            continue
        entry = kept.get(case.name)
        if entry is None or (entry.is_skipped and not case.is_skipped):
            kept[case.name] = case
    return list(kept.values())


def _escape(text: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in text)


def render_junit(suite: JUnitSuite) -> str:
    """Encode the suite as an indented <testsuite> document without a trailing newline."""
    if not suite.cases:
        return "<testsuite></testsuite>"
    lines = ["<testsuite>"]
    for case in suite.cases:
        attrs = f'name="{_escape(case.name)}" time="{_escape(case.time)}"'
        children = []
        if case.system_out:
            children.append(f"    <system-out>{_escape(case.system_out)}</system-out>")
        if case.failure:
            children.append(f"    <failure>{_escape(case.failure)}</failure>")
        if case.skipped is not None:
            children.append(f"    <skipped>{_escape(case.skipped)}</skipped>")
        if children:
            lines.append(f"  <testcase {attrs}>")
            lines.extend(children)
            lines.append("  </testcase>")
        else:
            lines.append(f"  <testcase {attrs}></testcase>")
    lines.append("</testsuite>")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    """Filter and merge JUnit files given on the command line."""
    parser = argparse.ArgumentParser(
        prog="filter-junit",
        description="Pass through only the JUnit test cases whose names match a pattern.",
    )
    parser.add_argument("-o", dest="output", default="-", help="junit file to write, - for stdout")
    parser.add_argument(
        "-t",
        dest="tests",
        default="",
        help="regular expression matching the test names to include in the output",
    )
    parser.add_argument("inputs", nargs="*", help="junit files to read, - for stdin")
    args = parser.parse_args(argv)

    pattern = re.compile(args.tests)
    cases: list[JUnitCase] = []
    for source in args.inputs:
        data = sys.stdin.buffer.read() if source == "-" else Path(source).read_bytes()
        cases.extend(parse_junit(data).cases)

    text = render_junit(JUnitSuite(cases=filter_cases(cases, pattern)))
    if args.output == "-":
        sys.stdout.write(text)
    else:
        Path(args.output).write_text(text, encoding="utf-8")
    return 0