"""CLI behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from defgen.cli import _build_parser, main
from tests._fixtures.module_builder import ModuleBuilder

_API = '''
    from typing import Protocol


    class Greeter(Protocol):
        """Greeter makes greetings."""

        def Greet(self, request: "GreetRequest") -> "GreetResponse": ...


    class Admin(Protocol):
        def Reset(self, request: "ResetRequest") -> "ResetResponse": ...


    class GreetRequest:
        Name: str


    class GreetResponse:
        Greeting: str


    class ResetRequest:
        Force: bool


    class ResetResponse:
        Ok: bool
'''


@pytest.fixture
def api(module_builder: ModuleBuilder) -> Path:
    module_builder.write({"api.py": _API})
    return module_builder.path("api.py")


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "parse", "api.py"])
    assert args.verbose is True
    assert args.command == "parse"
    assert args.patterns == ["api.py"]


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["render", "--verbose", "--template", "t.j2"])
    assert args.verbose is True
    assert args.command == "render"
    assert args.template == "t.j2"
    assert args.patterns == []


def test_cli_parse_prints_definition(tmp_path: Path, api: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--config", str(tmp_path), "parse", str(api)])

    data = json.loads(capsys.readouterr().out)
    assert data["packageName"] == "api"
    assert [service["name"] for service in data["services"]] == ["Admin", "Greeter"]


def test_cli_parse_writes_out_file_with_exclusions(tmp_path: Path, api: Path) -> None:
    out = tmp_path / "build" / "definition.json"

    main(["--config", str(tmp_path), "parse", "--exclude", "Admin", "--out", str(out), str(api)])

    data = json.loads(out.read_text(encoding="utf-8"))
    assert [service["name"] for service in data["services"]] == ["Greeter"]
    assert [obj["name"] for obj in data["objects"]] == ["GreetRequest", "GreetResponse"]


def test_cli_uses_config_patterns_and_exclusions(
    module_builder: ModuleBuilder, api: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = module_builder.path()
    (root / ".defgen.yml").write_text("patterns:\n  - api.py\nexclude: Greeter\n", encoding="utf-8")

    main(["--config", str(root), "parse"])

    data = json.loads(capsys.readouterr().out)
    assert [service["name"] for service in data["services"]] == ["Admin"]


def test_cli_render_uses_template_and_params(tmp_path: Path, api: Path) -> None:
    template = tmp_path / "client.j2"
    template.write_text(
        "{{ definition.packageName }}:{{ params.version }}\n"
        "{% for service in definition.services %}{{ service.name | camelize_down }}\n{% endfor %}",
        encoding="utf-8",
    )
    out = tmp_path / "client.txt"

    main(
        [
            "--config",
            str(tmp_path),
            "render",
            "--template",
            str(template),
            "--pkg",
            "client",
            "--params",
            "version:2",
            "--out",
            str(out),
            str(api),
        ]
    )

    assert out.read_text(encoding="utf-8") == "client:2\nadmin\ngreeter\n"


def test_cli_reports_parse_errors(
    module_builder: ModuleBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    module_builder.write(
        {
            "bad.py": """
                from typing import Protocol


                class Bad(Protocol):
                    def Do(self, first: int, second: int) -> int: ...
            """,
        }
    )

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "parse", str(module_builder.path("bad.py"))])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("defgen: ")
    assert "invalid method signature" in err


def test_cli_reports_notes_for_nested_failures(
    module_builder: ModuleBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    module_builder.write(
        {
            "nested.py": """
                from typing import Protocol


                class Api(Protocol):
                    def Call(self, request: "Req") -> "Req": ...


                class Req:
                    _secret: str
            """,
        }
    )

    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path), "parse", str(module_builder.path("nested.py"))])

    err = capsys.readouterr().err
    assert "_secret must be exported" in err
    assert "parse input object type of Api.Call" in err


def test_cli_requires_patterns(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "parse"])

    assert excinfo.value.code == 1
    assert "no definition patterns given" in capsys.readouterr().err


def test_cli_render_requires_template(tmp_path: Path, api: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "render", str(api)])
    assert excinfo.value.code == 1


def test_cli_reports_config_errors(tmp_path: Path, api: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / ".defgen.yml").write_text("- not\n- a mapping\n", encoding="utf-8")

    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path), "parse", str(api)])

    assert "must contain a mapping" in capsys.readouterr().err
