import logging

import pytest
from pydantic import ValidationError

from hideseek.logic.content import GameContent, default_content_path, load_content
from hideseek.logic.enums import ClueKind
from hideseek.logic.exceptions import NotFoundError


class TestPackagedContent:
    def test_packaged_content_loads(self):
        content = load_content()

        assert default_content_path().exists()
        assert len(content.challenges) >= 1
        assert len(content.curses) >= 1
        assert {c.kind for c in content.clue_types} == set(ClueKind)

    def test_dynamic_reward_challenge_present(self):
        content = load_content()
        assert any(c.token_reward is None for c in content.challenges)

    def test_missing_duration_is_warned(self, caplog):
        with caplog.at_level(logging.WARNING, logger="hideseek.logic.content"):
            load_content()
        assert "refusal-silence" in caplog.text


class TestLoadContent:
    def test_camel_case_keys_accepted(self, tmp_path):
        path = tmp_path / "content.yaml"
        path.write_text(
            "challenges:\n"
            "  - id: a\n"
            "    title: A\n"
            "    tokenReward: 4\n"
            "curses:\n"
            "  - id: c\n"
            "    title: C\n"
            "    tokenCost: 2\n"
            "    durationSeconds: 60\n"
            "clueTypes: []\n",
        )

        content = load_content(path)

        assert content.get_challenge("a").token_reward == 4
        assert content.get_curse("c").duration_seconds == 60

    def test_empty_file_gives_empty_catalog(self, tmp_path):
        path = tmp_path / "content.yaml"
        path.write_text("")
        assert load_content(path) == GameContent()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_content(tmp_path / "missing.yaml")

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError, match="duplicate curse id"):
            GameContent.model_validate(
                {"curses": [{"id": "x", "title": "X"}, {"id": "x", "title": "Y"}]},
            )

    def test_negative_cost_rejected(self):
        with pytest.raises(ValidationError):
            GameContent.model_validate(
                {"clue_types": [{"id": "d", "name": "D", "kind": "distance", "cost": -1}]},
            )


def test_lookups_raise_not_found(content):
    with pytest.raises(NotFoundError):
        content.get_challenge("nope")
    with pytest.raises(NotFoundError):
        content.get_curse("nope")
    with pytest.raises(NotFoundError):
        content.get_clue_type("nope")
