"""
Unit tests for prompt feature extraction and keyword matching
"""
from promptcoach.analysis.features import count_words, detect_language, extract_features
from promptcoach.analysis.keywords import contains_keyword, contains_word, find_matches, is_korean


class TestExtractFeatures:

    def test_empty_text(self):
        f = extract_features("")
        assert f.length == 0
        assert f.word_count == 0
        assert f.complexity == "simple"
        assert f.language_hint == "mixed"
        assert not f.has_code_block

    def test_english_prompt_with_file_path(self):
        f = extract_features("Fix the bug in src/app.ts")
        assert f.language_hint == "en"
        assert f.has_file_path
        assert f.word_count == 5
        assert f.complexity == "simple"

    def test_korean_prompt(self):
        f = extract_features("로그인 기능을 만들어줘")
        assert f.language_hint == "ko"
        assert f.word_count == 3

    def test_code_block_is_never_simple(self):
        f = extract_features("```py\nprint(1)\n```")
        assert f.has_code_block
        assert f.complexity == "moderate"

    def test_inline_code_counts_as_code(self):
        assert extract_features("rename `foo` please").has_code_block

    def test_long_prompt_is_complex(self):
        assert extract_features("word " * 60).complexity == "complex"

    def test_long_prompt_with_code_stays_moderate(self):
        text = "word " * 60 + "```x```"
        assert extract_features(text).complexity == "moderate"

    def test_punctuation_and_urls(self):
        f = extract_features("Why does https://example.com fail?!")
        assert f.has_question_mark
        assert f.has_exclamation_mark
        assert f.has_url

    def test_same_input_same_features(self):
        text = "리팩토링 해줘 please"
        assert extract_features(text) == extract_features(text)


class TestLanguageAndWords:

    def test_count_words_splits_on_any_whitespace(self):
        assert count_words("a  b\tc\nd") == 4
        assert count_words("   ") == 0

    def test_mixed_script(self):
        assert detect_language("버그 fix") == "mixed"


class TestKeywordMatching:

    def test_english_keywords_need_word_boundaries(self):
        assert contains_word("please fix it", "fix")
        assert not contains_word("add a prefix", "fix")

    def test_english_match_ignores_case(self):
        assert contains_keyword("Fix the login", "fix")

    def test_korean_keywords_match_inside_words(self):
        assert is_korean("수정")
        assert contains_keyword("이 함수 수정해줘", "수정")

    def test_find_matches_lists_korean_first(self):
        hits = find_matches("fix 버그 bug", ko=("버그",), en=("bug", "fix"))
        assert hits == ["버그", "bug", "fix"]
