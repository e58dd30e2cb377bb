import importlib
import io
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from quill.cli.live import InteractiveCli
from quill.cli.render import Renderer, strip_fence
from quill.errors import InvalidModelFormatError
from quill.llm import ModelEvent

cli_app_module = importlib.import_module("quill.cli.app")

SOLIDITY = "```solidity\npragma solidity ^0.8.0;\ncontract Token {}\n```"


def test_run_writes_code_to_output(monkeypatch, tmp_path: Path, clients, build_orchestrator) -> None:
    clients.writer.streams = [[ModelEvent.text(SOLIDITY)]]
    monkeypatch.setattr(
        cli_app_module, "build_orchestrator", lambda workspace, *, model=None: (build_orchestrator(), "test:model")
    )
    target = tmp_path / "Token.sol"

    result = CliRunner().invoke(cli_app_module.app, ["run", "Write an ERC20 token", "--output", str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8") == "pragma solidity ^0.8.0;\ncontract Token {}\n"


def test_run_prints_the_whole_contract_without_output(monkeypatch, clients, build_orchestrator) -> None:
    functions = [f"    function step{index}() external pure returns (uint256) {{ return {index}; }}" for index in range(60)]
    body = "\n".join(["pragma solidity ^0.8.0;", "contract Steps {", *functions, "}"])
    clients.writer.streams = [[ModelEvent.text(f"```solidity\n{body}\n```")]]
    monkeypatch.setattr(
        cli_app_module, "build_orchestrator", lambda workspace, *, model=None: (build_orchestrator(), "test:model")
    )

    result = CliRunner().invoke(cli_app_module.app, ["run", "Write a contract with many steps"])

    assert result.exit_code == 0, result.output
    assert "pragma solidity ^0.8.0;" in result.output
    assert "step0()" in result.output
    assert "step59()" in result.output
    assert "```" not in result.output.split("step59()")[-1]


def test_run_exits_non_zero_when_generation_fails(monkeypatch, clients, build_orchestrator) -> None:
    clients.writer.streams = [[], [], []]
    monkeypatch.setattr(
        cli_app_module, "build_orchestrator", lambda workspace, *, model=None: (build_orchestrator(), "test:model")
    )

    result = CliRunner().invoke(cli_app_module.app, ["run", "--skip"])

    assert result.exit_code == 1
    assert clients.decision.complete_calls == []


def test_run_reports_configuration_errors(monkeypatch) -> None:
    def _fail(workspace, *, model=None):
        raise InvalidModelFormatError("model must be provider:model")

    monkeypatch.setattr(cli_app_module, "build_orchestrator", _fail)

    result = CliRunner().invoke(cli_app_module.app, ["run", "token"])

    assert result.exit_code == 1
    assert "provider:model" in result.output


@pytest.mark.asyncio
async def test_interactive_cli_keeps_committed_history(clients, build_orchestrator) -> None:
    clients.decision.completions = ['{"next": "inquire"}', '{"next": "proceed"}']
    clients.inquiry.streams = [[ModelEvent.text("Which token standard?\n- ERC20\n- ERC721")]]
    clients.writer.streams = [[ModelEvent.text(SOLIDITY)]]
    renderer = Renderer(Console(file=io.StringIO(), force_terminal=False))
    cli = InteractiveCli(build_orchestrator(), renderer)

    assert await cli.handle_line("Write a token") is True
    assert [turn.content for turn in cli.history] == ['{"input": "Write a token"}', "inquiry: Which token standard?"]

    assert await cli.handle_line("ERC20") is True
    assert len(cli.history) == 4
    assert cli.history[-1].content == SOLIDITY
    assert clients.decision.complete_calls[1][1][1] == {"role": "assistant", "content": "inquiry: Which token standard?"}

    assert await cli.handle_line("/reset") is True
    assert cli.history == ()
    assert await cli.handle_line("   ") is True
    assert await cli.handle_line("/quit") is False


def test_strip_fence_handles_open_fence() -> None:
    assert strip_fence("```solidity\ncontract A {") == "contract A {"
    assert strip_fence(SOLIDITY) == "pragma solidity ^0.8.0;\ncontract Token {}"
    assert strip_fence("contract A {}") == "contract A {}"
