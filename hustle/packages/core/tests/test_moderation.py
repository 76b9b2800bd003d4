"""内容审核单元测试

测试内容：
1. 文本归一化（NFKC、大小写、标点、空白）
2. 各分类规则的结论与原因
3. 规则优先级：先命中的规则生效
4. 干净文本 approved，原因为空
"""

import pytest
from hustle.core.models.enums import ModerationStatus
from hustle.core.moderation import (
    DEFAULT_RULES,
    ContentModerator,
    ModerationRule,
    candidate_texts,
    moderate,
    normalize_text,
    normalize_text_spaced,
)


class TestNormalization:
    def test_lowercase_and_punctuation_stripped(self):
        assert normalize_text("Pick-up MY lunch!!!") == "pickup my lunch"
        assert normalize_text("g.u.n") == "gun"

    def test_spaced_variant(self):
        assert normalize_text_spaced("Pick-up MY lunch!!!") == "pick up my lunch"
        assert normalize_text_spaced("snake_case") == "snake case"

    def test_collapses_whitespace(self):
        assert normalize_text("  a \n\t b   c ") == "a b c"

    def test_nfkc_folds_fullwidth(self):
        # 全角字母
        assert normalize_text("ＧＵＮ") == "gun"

    def test_candidates_use_all_text_fields(self):
        candidates = candidate_texts(
            {
                "title": "Title",
                "description": None,
                "store": "Store",
                "dropoff_address": "Dorm 5",
                "dropoff_instructions": "Leave at door",
                "category": "ignored",
            }
        )
        assert candidates == ("title leave at door store dorm 5",)

    def test_candidates_include_both_punctuation_forms(self):
        assert candidate_texts({"title": "self-harm g.u.n"}) == (
            "selfharm gun",
            "self harm g u n",
        )


class TestVerdicts:
    def test_clean_text_approved(self):
        verdict = moderate({"title": "Pick up my lunch", "store": "Campus Cafe"})
        assert verdict.status == ModerationStatus.APPROVED
        assert verdict.reason is None
        assert verdict.is_approved

    def test_empty_text_approved(self):
        assert moderate({}).is_approved

    @pytest.mark.parametrize(
        "text,category",
        [
            ("looking for an escort tonight", "sexual"),
            ("bring me a gun", "violence"),
            ("need a KNIFE from the store", "violence"),
            ("pick up some weed", "illegal"),
            ("need a fake id", "illegal"),
            ("nazi rally flyers", "hate"),
        ],
    )
    def test_blocked_categories(self, text: str, category: str):
        verdict = moderate({"title": text})
        assert verdict.status == ModerationStatus.BLOCKED
        assert verdict.category == category
        assert verdict.is_blocked

    def test_weapon_reason_names_category(self):
        verdict = moderate({"title": "Deliver my gun"})
        assert verdict.reason == "Violence or weapon content is not allowed"
        assert verdict.matched_term == "gun"

    def test_plural_matches(self):
        assert moderate({"title": "two guns please"}).is_blocked

    def test_word_boundary(self):
        """子串不算命中：method 不含 meth，skill 不含 kill"""
        assert moderate({"title": "teach me the method for skill building"}).is_approved

    def test_dotted_term_blocked(self):
        """标点拆开的词去掉标点后仍能命中"""
        verdict = moderate({"title": "Bring me a g.u.n"})
        assert verdict.is_blocked
        assert verdict.category == "violence"
        assert verdict.matched_term == "gun"

    def test_punctuation_only_text_approved(self):
        assert moderate({"title": "!!! ..."}).is_approved

    def test_obfuscated_punctuation_split(self):
        """标点被替换为空格后多词短语仍能命中"""
        assert moderate({"description": "self-harm tips"}).is_blocked

    def test_blocked_term_in_any_field(self):
        verdict = moderate({"title": "Lunch", "dropoff_instructions": "bring the bomb"})
        assert verdict.is_blocked

    @pytest.mark.parametrize(
        "text,category",
        [
            ("write my essay for money", "academic_integrity"),
            ("take my exam online", "academic_integrity"),
            ("click here for free money", "spam"),
            ("grab a six pack of beer", "sensitive"),
            ("cash only, be discreet", "sensitive"),
        ],
    )
    def test_needs_review_categories(self, text: str, category: str):
        verdict = moderate({"title": text})
        assert verdict.status == ModerationStatus.NEEDS_REVIEW
        assert verdict.category == category
        assert verdict.reason

    def test_academic_term_without_action_is_approved(self):
        """只提到考试而没有代写 / 代考动作时不需要审核"""
        assert moderate({"title": "coffee before my exam"}).is_approved


class TestPriority:
    def test_blocked_wins_over_review(self):
        verdict = moderate({"title": "beer and a gun"})
        assert verdict.status == ModerationStatus.BLOCKED
        assert verdict.category == "violence"

    def test_sexual_checked_before_violence(self):
        verdict = moderate({"title": "nude knife"})
        assert verdict.category == "sexual"

    def test_rule_order(self):
        categories = [rule.category for rule in DEFAULT_RULES]
        assert categories[:4] == ["sexual", "violence", "illegal", "hate"]

    def test_custom_rules(self):
        moderator = ContentModerator(
            [
                ModerationRule(
                    category="custom",
                    verdict=ModerationStatus.NEEDS_REVIEW,
                    reason="Custom review",
                    terms=("pineapple pizza",),
                )
            ]
        )
        assert [rule.category for rule in moderator.rules] == ["custom"]
        assert moderator.moderate({"title": "Pineapple  Pizza run"}).category == "custom"
        assert moderator.moderate({"title": "bring a gun"}).is_approved

    def test_rule_requires_terms(self):
        with pytest.raises(ValueError):
            ModerationRule(
                category="empty",
                verdict=ModerationStatus.BLOCKED,
                reason="",
                terms=(),
            )

    def test_deterministic(self):
        fields = {"title": "bring me vodka", "store": "Corner Shop"}
        assert moderate(fields) == moderate(fields)
