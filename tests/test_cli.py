import json

import pytest
from fakes import violation

from yak_a11y import cli
from yak_a11y.checker import CheckResult
from yak_a11y.phases import CheckState
from yak_a11y.report import ReportEngine


def parse(*argv):
    return cli.build_parser().parse_args(list(argv))


def test_missing_target_exits_non_zero(capsys):
    assert cli.main([]) == 1
    assert "--file" in capsys.readouterr().err


def test_watch_requires_url():
    assert cli.main(["--file", "index.html", "--watch", "src"]) == 1


def test_flags_map_onto_configuration():
    config = cli.configuration_from_args(parse(
        "--url", "http://localhost:4321", "--verbose", "--route-changes", "--ajax-timeout", "1500",
        "--frameworks", "react,solid", "--no-auto-detect", "--strict",
    ))

    assert config.verbose
    assert config.dynamic_testing.enabled and config.dynamic_testing.route_changes
    assert config.dynamic_testing.ajax_timeout_ms == 1500
    assert config.island_testing.enabled
    assert config.island_testing.frameworks == {"react", "solid"}
    assert not config.island_testing.auto_detect
    assert config.strict


def test_config_file_is_loaded(tmp_path):
    path = tmp_path / "a11y.json"
    path.write_text(json.dumps({"islandTesting": {"enabled": True}}), encoding="utf-8")
    assert cli.configuration_from_args(parse("--file", "x.html", "--config", str(path))).islands_requested


def test_multiple_files_are_accepted():
    assert parse("--file", "a.html", "b.html").file == ["a.html", "b.html"]


class StubChecker:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.checked = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def check_url(self, url, config):
        return await self._next(url)

    async def check_static_html(self, path, config):
        return await self._next(path)

    async def _next(self, target):
        self.checked.append(target)
        if self.error is not None:
            raise self.error
        return self.results.pop(0)


def result_with(violations):
    report = ReportEngine().build(violations)
    return CheckResult(target="t", state=CheckState.DONE, states=[CheckState.DONE], violations=list(violations), report=report)


def test_errors_are_reported_and_exit_non_zero(monkeypatch, capsys):
    monkeypatch.setattr(cli, "AccessibilityChecker", lambda: StubChecker(error=RuntimeError("boom")))
    assert cli.main(["--url", "https://example.com"]) == 1
    err = capsys.readouterr().err
    assert "boom" in err and "To fix this:" in err


@pytest.mark.parametrize("fail_flag, expected", [([], 0), (["--fail-on-violations"], 1)])
def test_violations_exit_code(monkeypatch, tmp_path, fail_flag, expected):
    stub = StubChecker(results=[result_with([violation("label", "<input>")]), result_with([])])
    monkeypatch.setattr(cli, "AccessibilityChecker", lambda: stub)
    out = tmp_path / "report.json"

    code = cli.main(["--url", "https://example.com", "--file", "a.html", "--json", str(out)] + fail_flag)

    assert code == expected
    assert stub.checked == ["https://example.com", "a.html"]
    assert json.loads(out.read_text(encoding="utf-8"))["passed"] is False
