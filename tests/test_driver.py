# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from sleighc import driver

GOOD = (
	'<sleigh version="3" bigendian="false" align="1" uniqbase="0x10C3C0">\n'
	'<sourcefiles><sourcefile name="ia.sinc" index="0"/><sourcefile name="lockable.sinc" index="1"/></sourcefiles>\n'
	'<spaces defaultspace="ram"><space name="ram" index="1" bigendian="false" delay="1" size="4" physical="true"/></spaces>\n'
	'<symbol_table scopesize="0" symbolsize="0"></symbol_table>\n'
	"</sleigh>\n"
)
BAD = GOOD.replace('index="0"/>', 'idx="0"/>')


def _write(tmp_path: Path, name: str, text: str) -> Path:
	path = tmp_path / name
	path.write_text(text, encoding="utf-8")
	return path


def test_success_prints_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = _write(tmp_path, "x86.sla", GOOD)
	assert driver.main([str(path)]) == 0
	out = capsys.readouterr()
	assert out.out.strip() == f"{path}: 2 source files, 1 spaces, 0 symbols"
	assert out.err == ""


def test_errors_are_printed_with_locations(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = _write(tmp_path, "bad.sla", BAD)
	assert driver.main([str(path)]) == 1
	err = capsys.readouterr().err.strip().splitlines()
	assert len(err) == 1
	column = BAD.splitlines()[1].index("idx") + 1
	assert err[0].startswith(f"{path}:2:{column}: error: expected 'index'")


def test_json_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	good = _write(tmp_path, "good.sla", GOOD)
	bad = _write(tmp_path, "bad.sla", BAD)
	assert driver.main([str(good), str(bad), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	(diag,) = payload["diagnostics"]
	assert diag["phase"] == "parser"
	assert diag["code"] == "E-SYNTAX"
	assert diag["file"] == str(bad)
	assert diag["line"] == 2


def test_json_output_success(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = _write(tmp_path, "good.sla", GOOD)
	assert driver.main([str(path), "--json"]) == 0
	assert json.loads(capsys.readouterr().out) == {"exit_code": 0, "diagnostics": []}


def test_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	missing = tmp_path / "nope.sla"
	assert driver.main([str(missing)]) == 1
	err = capsys.readouterr().err
	assert err.startswith(f"{missing}:?:?: error: cannot read file")


def test_max_errors_option(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	text = GOOD.replace('index="0"/>', 'idx="0"/>').replace('index="1"/>', 'idx="1"/>')
	path = _write(tmp_path, "two.sla", text)
	assert driver.main([str(path), "--json"]) == 1
	assert len(json.loads(capsys.readouterr().out)["diagnostics"]) == 2
	assert driver.main([str(path), "--json", "--max-errors", "1"]) == 1
	assert len(json.loads(capsys.readouterr().out)["diagnostics"]) == 1
	assert driver.main([str(path), "--json", "--no-recover"]) == 1
	assert len(json.loads(capsys.readouterr().out)["diagnostics"]) == 1


def test_max_errors_must_be_positive(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = _write(tmp_path, "x86.sla", GOOD)
	with pytest.raises(SystemExit) as exc:
		driver.main([str(path), "--max-errors", "0"])
	assert exc.value.code == 2
	assert "max_errors must be at least 1" in capsys.readouterr().err
