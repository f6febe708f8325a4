import pytest

from csiproxy.junit_filter import (
    JUnitCase,
    JUnitSuite,
    filter_cases,
    main,
    parse_junit,
    render_junit,
)

V1_DOC = b"""<testsuite>
  <testcase name="alpha test" time="1.5">
    <system-out>hello</system-out>
  </testcase>
  <testcase name="beta test" time="2">
    <failure>boom</failure>
  </testcase>
  <testcase name="gamma test" time="0">
    <skipped></skipped>
  </testcase>
</testsuite>"""

V2_DOC = b"""<testsuites>
  <testsuite>
    <testcase name="alpha test" time="3"></testcase>
    <testcase name="delta test" time="4">
      <skipped>not now</skipped>
    </testcase>
  </testsuite>
</testsuites>"""


def test_parse_testsuite_root():
    suite = parse_junit(V1_DOC)
    assert [c.name for c in suite.cases] == ["alpha test", "beta test", "gamma test"]
    assert suite.cases[0].system_out == "hello"
    assert suite.cases[0].time == "1.5"
    assert suite.cases[1].failure == "boom"
    assert suite.cases[1].skipped is None
    assert suite.cases[2].skipped == ""
    assert suite.cases[2].is_skipped


def test_parse_testsuites_root():
    suite = parse_junit(V2_DOC)
    assert [c.name for c in suite.cases] == ["alpha test", "delta test"]
    assert suite.cases[1].skipped == "not now"


def test_parse_rejects_other_root():
    with pytest.raises(ValueError, match="expected element type <testsuite>"):
        parse_junit(b"<report></report>")


def test_parse_rejects_malformed_xml():
    with pytest.raises(ValueError):
        parse_junit(b"<testsuite>")


def test_filter_by_pattern():
    cases = parse_junit(V1_DOC).cases
    kept = filter_cases(cases, "^(alpha|gamma)")
    assert [c.name for c in kept] == ["alpha test", "gamma test"]


def test_filter_empty_pattern_keeps_everything():
    cases = parse_junit(V1_DOC).cases
    assert filter_cases(cases, "") == cases


def test_real_run_replaces_skipped_case():
    skipped = JUnitCase(name="x", time="0", skipped="")
    real = JUnitCase(name="x", time="5")
    assert filter_cases([skipped, real], "x") == [real]


def test_skipped_does_not_replace_real_run():
    real = JUnitCase(name="x", time="5")
    skipped = JUnitCase(name="x", time="0", skipped="")
    assert filter_cases([real, skipped], "x") == [real]


def test_duplicate_skipped_kept_once():
    first = JUnitCase(name="x", time="1", skipped="")
    second = JUnitCase(name="x", time="2", skipped="")
    assert filter_cases([first, second], "") == [first]


def test_render_empty_suite():
    assert render_junit(JUnitSuite()) == "<testsuite></testsuite>"


def test_render_keeps_empty_skipped_element():
    text = render_junit(JUnitSuite(cases=[JUnitCase(name="s", time="0", skipped="")]))
    assert "<skipped></skipped>" in text
    assert "<failure>" not in text
    assert "<system-out>" not in text


def test_render_round_trip():
    suite = parse_junit(V1_DOC)
    assert parse_junit(render_junit(suite)) == suite


def test_render_round_trip_with_special_characters():
    case = JUnitCase(
        name='a "quoted" <name> & \'more\'',
        time="1",
        system_out="line one\nline two\ttabbed\r",
        failure="x < y && y > z",
    )
    suite = JUnitSuite(cases=[case])
    assert parse_junit(render_junit(suite)) == suite


def test_render_has_no_trailing_newline():
    text = render_junit(parse_junit(V1_DOC))
    assert text.startswith("<testsuite>")
    assert text.endswith("</testsuite>")


def test_main_merges_and_filters_to_file(tmp_path):
    first = tmp_path / "a.xml"
    second = tmp_path / "b.xml"
    out = tmp_path / "out.xml"
    first.write_bytes(V1_DOC)
    second.write_bytes(V2_DOC)

    assert main(["-o", str(out), "-t", "test$", str(first), str(second)]) == 0

    cases = parse_junit(out.read_bytes()).cases
    names = [c.name for c in cases]
    assert sorted(names) == ["alpha test", "beta test", "delta test", "gamma test"]
    alpha = next(c for c in cases if c.name == "alpha test")
    assert alpha.time == "1.5"


def test_main_writes_to_stdout(tmp_path, capsys):
    source = tmp_path / "a.xml"
    source.write_bytes(V1_DOC)

    assert main(["-t", "beta", str(source)]) == 0

    written = capsys.readouterr().out
    cases = parse_junit(written).cases
    assert [c.name for c in cases] == ["beta test"]
    assert cases[0].failure == "boom"


def test_main_missing_input_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        main(["-o", str(tmp_path / "out.xml"), str(tmp_path / "missing.xml")])