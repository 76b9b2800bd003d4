"""内容审核 -- 纯函数，无 I/O，同样的输入总是得到同样的结论

流程：
1. 标题、描述、店铺、地址、送达说明合并为一段文本并归一化
   （NFKC + 小写 + 去除标点 + 合并空白）；另保留一份标点换成空格的候选文本
2. 按优先级依次匹配规则，命中第一条即返回该规则的结论
3. 全部未命中返回 approved

blocked 结论由提交服务拒绝写入；needs_review 允许写入，但任务只对发布者可见。
"""

import re
import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .models.enums import ModerationStatus

# 参与审核的字段，按拼接顺序排列
MODERATED_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "dropoff_instructions",
    "store",
    "dropoff_address",
)

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def _fold(text: str) -> str:
    return unicodedata.normalize("NFKC", text).lower().replace("_", " ")


def normalize_text(text: str) -> str:
    """归一化单段文本：NFKC、小写、去除标点、合并空白

    NFKC 把全角、数学字母等变体折叠为普通字符；
    去除标点使 "g.u.n" 之类拆分写法还原为 "gun"。
    """
    text = _PUNCTUATION.sub("", _fold(text))
    return _WHITESPACE.sub(" ", text).strip()


def normalize_text_spaced(text: str) -> str:
    """同 normalize_text，但标点替换为空格：self-harm -> self harm"""
    text = _PUNCTUATION.sub(" ", _fold(text))
    return _WHITESPACE.sub(" ", text).strip()


def candidate_texts(text_fields: Mapping[str, str | None]) -> tuple[str, ...]:
    """参与匹配的归一化文本：去除标点版本在前，标点换成空格的版本在后（相同时只保留一份）"""
    joined = " ".join(text_fields.get(name) or "" for name in MODERATED_FIELDS)
    stripped = normalize_text(joined)
    spaced = normalize_text_spaced(joined)
    return (stripped,) if spaced == stripped else (stripped, spaced)


def _compile_terms(terms: Iterable[str]) -> re.Pattern[str]:
    # 词边界匹配，允许简单复数（gun / guns）
    alternatives = "|".join(
        re.escape(normalize_text(term)).replace(r"\ ", r"\s+") for term in terms
    )
    return re.compile(rf"\b(?:{alternatives})s?\b")


@dataclass(frozen=True)
class ModerationRule:
    """单条审核规则

    Attributes:
        category: 规则分类名
        verdict: 命中后的审核结论
        reason: 面向用户的原因说明，需点明违规分类
        terms: 命中词列表
        context_terms: 非空时要求文本同时命中其中之一才算命中
    """

    category: str
    verdict: ModerationStatus
    reason: str
    terms: tuple[str, ...]
    context_terms: tuple[str, ...] = ()
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _context_pattern: re.Pattern[str] | None = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.terms:
            raise ValueError(f"moderation rule {self.category!r} has no terms")
        object.__setattr__(self, "_pattern", _compile_terms(self.terms))
        object.__setattr__(
            self,
            "_context_pattern",
            _compile_terms(self.context_terms) if self.context_terms else None,
        )

    def match(self, normalized: str) -> str | None:
        """返回命中的词，未命中返回 None"""
        found = self._pattern.search(normalized)
        if found is None:
            return None
        if self._context_pattern is not None and not self._context_pattern.search(
            normalized
        ):
            return None
        return found.group(0)


@dataclass(frozen=True)
class ModerationVerdict:
    """审核结论"""

    status: ModerationStatus
    reason: str | None = None
    category: str | None = None
    matched_term: str | None = None

    @property
    def is_blocked(self) -> bool:
        return self.status == ModerationStatus.BLOCKED

    @property
    def is_approved(self) -> bool:
        return self.status == ModerationStatus.APPROVED


APPROVED = ModerationVerdict(status=ModerationStatus.APPROVED)


# 按优先级排列，命中第一条即返回
DEFAULT_RULES: tuple[ModerationRule, ...] = (
    ModerationRule(
        category="sexual",
        verdict=ModerationStatus.BLOCKED,
        reason="Sexual content is not allowed",
        terms=(
            "sex", "sexual", "porn", "nude", "naked", "hookup", "escort",
            "prostitute", "intimate",
        ),
    ),
    ModerationRule(
        category="violence",
        verdict=ModerationStatus.BLOCKED,
        reason="Violence or weapon content is not allowed",
        terms=(
            "kill", "murder", "assault", "beat up", "threaten", "violence",
            "attack", "gun", "firearm", "weapon", "knife", "bomb", "explosive",
            "suicide", "self harm", "kill myself",
        ),
    ),
    ModerationRule(
        category="illegal",
        verdict=ModerationStatus.BLOCKED,
        reason="Illegal substances or activities are not allowed",
        terms=(
            "cocaine", "heroin", "meth", "fentanyl", "drug", "weed",
            "marijuana", "vape", "fake id", "forged", "stolen", "hack",
            "doxx", "leak address",
        ),
    ),
    ModerationRule(
        category="hate",
        verdict=ModerationStatus.BLOCKED,
        reason="Hate speech or discrimination is not allowed",
        terms=("racist", "nazi", "terrorist", "extremist", "white power", "slur"),
    ),
    ModerationRule(
        category="academic_integrity",
        verdict=ModerationStatus.NEEDS_REVIEW,
        reason="Academic content requires review",
        terms=(
            "cheat", "plagiarism", "exam", "midterm", "final exam", "quiz",
            "homework", "assignment", "essay", "term paper", "lab report",
        ),
        context_terms=(
            "sell", "buy", "complete", "write", "take", "finish", "do my",
            "answers",
        ),
    ),
    ModerationRule(
        category="spam",
        verdict=ModerationStatus.NEEDS_REVIEW,
        reason="Potential spam content detected",
        terms=(
            "click here", "free money", "make money fast", "bitcoin", "crypto",
            "giveaway", "dm me", "whatsapp", "telegram", "guaranteed income",
        ),
    ),
    ModerationRule(
        category="sensitive",
        verdict=ModerationStatus.NEEDS_REVIEW,
        reason="Sensitive content requires review",
        terms=(
            "alcohol", "beer", "vodka", "whiskey", "liquor", "prescription",
            "pill", "medication", "cash only", "discreet", "adult", "mature",
            "revenge", "payback", "get back at", "fight",
        ),
    ),
)


class ContentModerator:
    """规则驱动的内容审核器"""

    def __init__(self, rules: Iterable[ModerationRule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[ModerationRule, ...]:
        return self._rules

    def moderate(self, text_fields: Mapping[str, str | None]) -> ModerationVerdict:
        """审核任务文本字段

        Args:
            text_fields: 字段名 -> 文本，未出现在 MODERATED_FIELDS 中的键被忽略

        Returns:
            ModerationVerdict，approved 时 reason 为 None
        """
        candidates = candidate_texts(text_fields)
        if not candidates[0]:
            return APPROVED
        # 规则优先级高于候选文本顺序
        for rule in self._rules:
            for text in candidates:
                term = rule.match(text)
                if term is not None:
                    return ModerationVerdict(
                        status=rule.verdict,
                        reason=rule.reason,
                        category=rule.category,
                        matched_term=term,
                    )
        return APPROVED


_default_moderator = ContentModerator()


def moderate(text_fields: Mapping[str, str | None]) -> ModerationVerdict:
    """使用默认规则审核"""
    return _default_moderator.moderate(text_fields)
