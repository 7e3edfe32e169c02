from hideseek.logic.enums import GameEventType
from hideseek.session.events import GameEventLog
from hideseek.tests.mocks import DEFAULT_NOW, FakeClock


class TestGameEventLog:
    def test_record_and_history(self):
        log = GameEventLog(FakeClock())
        log.record("g1", GameEventType.GAME_STARTED, None, {"round": 1})
        log.record("g1", GameEventType.TOKENS_UPDATED, "red", {"from": 10, "to": 4})
        log.record("g2", GameEventType.GAME_CREATED, None, {})

        history = log.history("g1")

        assert [e.type for e in history] == [GameEventType.GAME_STARTED, GameEventType.TOKENS_UPDATED]
        assert history[1].actor == "red"
        assert history[1].payload == {"from": 10, "to": 4}
        assert history[0].timestamp == DEFAULT_NOW

    def test_history_is_bounded(self):
        log = GameEventLog(FakeClock(), limit=3)
        for i in range(5):
            log.record("g1", GameEventType.TOKENS_UPDATED, None, {"to": i})

        assert [e.payload["to"] for e in log.history("g1")] == [2, 3, 4]

    def test_clear(self):
        log = GameEventLog(FakeClock())
        log.record("g1", GameEventType.GAME_CREATED, None, {})
        log.clear("g1")
        assert log.history("g1") == []

    def test_event_dump_is_camel_case(self):
        log = GameEventLog(FakeClock())
        log.record("g1", GameEventType.GAME_CREATED, None, {})
        dumped = log.history("g1")[0].model_dump(mode="json", by_alias=True)
        assert dumped["gameId"] == "g1"
        assert dumped["type"] == "game_created"
