import pytest
from loguru import logger

import quill.logging_utils as logging_utils
from quill.llm import ModelEvent
from quill.logging_utils import configure_logging


@pytest.mark.asyncio
async def test_records_carry_exchange_id(clients, build_orchestrator) -> None:
    configure_logging(profile="default", level="WARNING")
    seen: list[str] = []
    sink_id = logger.add(lambda message: seen.append(message.record["extra"]["exchange"]), level="INFO")
    try:
        logger.info("outside")
        clients.writer.streams = [[ModelEvent.text("contract A {}")]]
        exchange = build_orchestrator().submit(form={"input": "token"})
        await exchange.wait()
    finally:
        logger.remove(sink_id)

    assert seen[0] == "-"
    assert str(exchange.id) in seen


def test_changing_level_reconfigures_the_sink(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(logging_utils, "_CONFIGURED", None)

    configure_logging(profile="default", level="WARNING")
    logger.debug("hidden at warning")
    configure_logging(profile="default", level="WARNING")
    configure_logging(profile="default", level="DEBUG")
    logger.debug("shown at debug")

    err = capsys.readouterr().err
    assert "hidden at warning" not in err
    assert "shown at debug" in err
