"""
Unit tests for intent and task-category classification
"""
from types import MappingProxyType

import pytest

from promptcoach.analysis.classifier import (
    classify_intent,
    classify_prompt,
    classify_task_category,
)
from promptcoach.analysis.patterns import LanguagePatterns, PatternTables

SAMPLES = [
    "",
    "이거 왜 안되나요?",
    "Create a new login component",
    "fix the bug",
    "로그인 기능에 버그가 있어서 수정해줘. 테스트 코드도 작성해줘",
    "review and test this code",
    "```js\nconst x = 1\n```",
    "lorem ipsum " * 40,
]


class TestClassifyIntent:

    def test_korean_question(self):
        result = classify_intent("이거 왜 안되나요?")
        assert result.intent == "question"
        assert "왜" in result.matched_keywords

    def test_english_command(self):
        result = classify_intent("Create a new login component")
        assert result.intent == "command"
        assert result.matched_keywords == ("create",)

    def test_word_boundary_keeps_prefix_from_matching_fix(self):
        result = classify_intent("prefix the value")
        assert result.matched_keywords == ()
        assert result.intent == "command"
        assert result.confidence == 0.5

    def test_empty_text_resolves_to_command(self):
        result = classify_intent("")
        assert result.intent == "command"
        assert result.confidence == 0.5

    def test_unmatched_question_mark_falls_back_to_question(self):
        result = classify_intent("xyz?")
        assert result.intent == "question"
        assert result.confidence == 0.5

    def test_unmatched_long_text_falls_back_to_instruction(self):
        result = classify_intent("lorem ipsum " * 40)
        assert result.intent == "instruction"

    def test_command_question_tie_prefers_command_without_question_mark(self):
        result = classify_intent("fix how")
        assert result.scores["command"] == result.scores["question"]
        assert result.intent == "command"

    def test_question_mark_tips_tie_to_question(self):
        assert classify_intent("fix how?").intent == "question"

    def test_negation_penalties_compound(self):
        result = classify_intent("don't create anything")
        # 1 - 0.3 ("don't") - 0.5 ("don't create")
        assert result.scores["command"] == pytest.approx(0.2)

    def test_negation_floors_scores_at_zero(self):
        result = classify_intent("don't")
        assert all(score >= 0 for score in result.scores.values())

    @pytest.mark.parametrize("text", SAMPLES)
    def test_confidence_in_unit_range(self, text):
        assert 0.0 <= classify_intent(text).confidence <= 1.0

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        assert classify_intent(text) == classify_intent(text)


class TestClassifyTaskCategory:

    def test_bug_fix_with_cooccurrence_bonus(self):
        result = classify_task_category("fix the bug")
        assert result.category == "bug-fix"
        # bug + fix + the (fix, bug) co-occurrence bonus
        assert result.scores["bug-fix"] == pytest.approx(2.3)

    def test_create_component(self):
        result = classify_task_category("Create a new login component")
        assert result.category == "code-generation"
        assert result.confidence == 1.0

    def test_fix_resolves_to_code_generation_for_new_features(self):
        result = classify_task_category("fix: add a new feature")
        assert result.scores["bug-fix"] == 1.0
        assert result.scores["code-generation"] == pytest.approx(2.3)
        assert result.category == "code-generation"

    def test_test_resolves_to_review_when_reviewing(self):
        result = classify_task_category("review and test this code")
        assert result.category == "code-review"
        assert result.scores["code-review"] == pytest.approx(1.3)
        assert not result.is_multi_intent
        assert [cat for cat, _ in result.secondary] == ["testing"]

    def test_close_scores_are_multi_intent(self):
        result = classify_task_category("write docs")
        assert result.category == "code-generation"
        assert result.is_multi_intent
        assert result.confidence == pytest.approx(0.7)
        assert result.secondary == (("documentation", pytest.approx(0.55)),)

    def test_no_keywords_is_unknown(self):
        result = classify_task_category("")
        assert result.category == "unknown"
        assert result.confidence == 0.3
        assert result.secondary == ()

    @pytest.mark.parametrize("text", SAMPLES)
    def test_confidence_in_unit_range(self, text):
        result = classify_task_category(text)
        assert 0.0 <= result.confidence <= 1.0
        assert all(0.0 <= conf <= 0.9 for _, conf in result.secondary)


class TestCustomTables:

    @pytest.fixture
    def tables(self):
        return PatternTables(
            intents=MappingProxyType({"command": LanguagePatterns(en=("run",))}),
            categories=MappingProxyType({"testing": LanguagePatterns(en=("pytest",))}),
            disambiguation=(),
            cooccurrence=(),
            negation=(),
        )

    def test_injected_tables_replace_defaults(self, tables):
        result = classify_prompt("run pytest", tables)
        assert result.intent == "command"
        assert result.task_category == "testing"

    def test_default_keywords_are_not_used(self, tables):
        assert classify_task_category("fix the bug", tables).category == "unknown"


class TestClassifyPrompt:

    def test_combines_intent_category_and_features(self):
        result = classify_prompt("이거 왜 안되나요?")
        assert result.intent == "question"
        assert result.features.language_hint == "ko"
        assert result.features.has_question_mark

    def test_empty_prompt(self):
        result = classify_prompt("")
        assert result.intent == "command"
        assert result.task_category == "unknown"
        assert result.features.word_count == 0
