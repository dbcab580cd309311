"""
Lookup tables and weights for the analyzers.

Every table is an immutable frozen dataclass so a deployment can tune it and
pass it into an analyzer's constructor. The module-level DEFAULT_* instances
hold the production values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


# ============================================================================
# Subject keywords (Subject Classifier)
# ============================================================================

_SUBJECT_KEYWORDS = {
    "math": (
        "수학", "수식", "방정식", "함수", "미분", "적분", "확률", "통계", "기하", "대수",
        "인수분해", "이차방정식", "일차함수", "삼각함수", "로그", "지수", "행렬", "벡터",
        "구하시오", "계산하시오", "풀이", "증명", "x", "y", "√", "∫", "π",
    ),
    "korean": (
        "국어", "문학", "시", "소설", "수필", "희곡", "문법", "어휘", "독해", "작문",
        "문장", "단어", "주제", "표현", "비유", "은유", "직유", "의미", "해석",
        "글쓴이", "화자", "서술자", "등장인물",
    ),
    "english": (
        "english", "영어", "vocabulary", "grammar", "reading", "listening",
        "the", "is", "are", "was", "were", "have", "has", "had",
        "following", "passage", "sentence", "word", "phrase",
    ),
    "science": (
        "과학", "물리", "화학", "생물", "지구과학", "실험", "관찰", "가설",
        "원자", "분자", "세포", "유전", "DNA", "RNA", "에너지", "힘", "운동",
        "전기", "자기", "파동", "열", "광합성", "호흡", "진화",
    ),
    "social": (
        "사회", "역사", "지리", "경제", "정치", "문화", "민주주의", "헌법",
        "조선", "고려", "삼국", "일제", "광복", "6.25", "산업화", "민주화",
        "위도", "경도", "기후", "지형", "인구",
    ),
}

# Phrases hinting at the declared difficulty tier of a problem
_TIER_INDICATORS = {
    "LOW": (
        "다음 중", "고르시오", "찾으시오", "무엇인가", "맞는 것은",
        "기본", "개념", "정의",
    ),
    "MEDIUM": (
        "옳은 것만을", "이유를", "비교하시오", "차이점", "설명하시오",
        "분석", "적용", "관계",
    ),
    "HIGH": (
        "논술하시오", "평가하시오", "비판하시오", "종합하시오", "추론하시오",
        "창의적", "실생활", "심화", "융합", "탐구",
    ),
}


@dataclass(frozen=True)
class ClassifierTables:
    """Keyword sets used by the subject classifier and tier heuristic."""

    # Iteration order decides ties: the first subject reaching the max keeps it.
    subject_keywords: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _frozen(_SUBJECT_KEYWORDS)
    )
    tier_indicators: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _frozen(_TIER_INDICATORS)
    )
    keywords_for_full_confidence: int = 5


# ============================================================================
# Difficulty estimation
# ============================================================================

_ADVANCED_VOCABULARY = (
    "분석", "종합", "평가", "추론", "비판", "성찰", "탐구", "고찰",
    "유추", "귀납", "연역", "함의", "맥락", "통찰", "개념화", "범주화",
    "인과관계", "상관관계", "변수", "가설", "검증", "논증", "반박",
)

_MATH_KEYWORDS = (
    "함수", "방정식", "부등식", "미분", "적분", "극한", "행렬", "벡터",
    "확률", "통계", "수열", "급수", "기하", "삼각함수", "로그", "지수",
    "그래프", "좌표", "도형", "증명", "정리", "공식",
)

# Complex-sentence constructions (conditionals, concessions, comparisons)
_COMPLEX_PATTERNS = (
    r"만약.*라면",
    r"비록.*하더라도",
    r".*뿐만\s*아니라",
    r".*에\s*비해",
    r".*와\s*달리",
    r".*에\s*따르면",
    r".*을\s*전제로",
    r".*의\s*관점에서",
)

_FACTOR_WEIGHTS = {
    "textComplexity": 0.25,
    "conceptLevel": 0.3,
    "mathComplexity": 0.2,
    "vocabularyLevel": 0.15,
    "structureComplexity": 0.1,
}

_GRADE_MULTIPLIERS = {
    "ELEMENTARY_1": 0.5,
    "ELEMENTARY_2": 0.55,
    "ELEMENTARY_3": 0.6,
    "ELEMENTARY_4": 0.65,
    "ELEMENTARY_5": 0.7,
    "ELEMENTARY_6": 0.75,
    "MIDDLE_1": 0.8,
    "MIDDLE_2": 0.85,
    "MIDDLE_3": 0.9,
    "HIGH_1": 0.95,
    "HIGH_2": 1.0,
    "HIGH_3": 1.05,
}


@dataclass(frozen=True)
class DifficultyTables:
    """Vocabulary, patterns and weights for the difficulty estimator."""

    advanced_vocabulary: tuple[str, ...] = _ADVANCED_VOCABULARY
    math_keywords: tuple[str, ...] = _MATH_KEYWORDS
    complex_patterns: tuple[str, ...] = _COMPLEX_PATTERNS
    factor_weights: Mapping[str, float] = field(default_factory=lambda: _frozen(_FACTOR_WEIGHTS))
    grade_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen(_GRADE_MULTIPLIERS)
    )
    # Upper bounds (exclusive) for EASY, MEDIUM, HARD; anything above is VERY_HARD
    level_bounds: tuple[float, float, float] = (30, 55, 75)


# ============================================================================
# Quality scoring
# ============================================================================

_GRADE_TRUST_SCORES = {
    "A": 100,  # Public open material
    "B": 80,   # School/teacher provided, contract based
    "C": 60,   # Academy/instructor, revenue share
    "D": 40,   # User submitted, stricter review
    "E": 20,   # Reference only, no AI training
}

_GRADE_DESCRIPTIONS = {
    "A": "Public open material - copyright safe",
    "B": "School/teacher provided - contract based",
    "C": "Academy/instructor - revenue share",
    "D": "User submitted - stricter review",
    "E": "Reference data - AI training restricted",
}

_SCORE_WEIGHTS = {
    "accuracy": 0.3,
    "clarity": 0.2,
    "difficultyFit": 0.15,
    "trust": 0.2,
    "usage": 0.15,
}

_CORRECT_RATE_RANGES = {
    "LOW": (0.6, 1.0),
    "MEDIUM": (0.3, 0.7),
    "HIGH": (0.0, 0.4),
}


@dataclass(frozen=True)
class ScoringTables:
    """Trust table, composite weights and tier expectations for the quality scorer."""

    grade_trust_scores: Mapping[str, int] = field(
        default_factory=lambda: _frozen(_GRADE_TRUST_SCORES)
    )
    grade_descriptions: Mapping[str, str] = field(
        default_factory=lambda: _frozen(_GRADE_DESCRIPTIONS)
    )
    default_trust_score: int = 40
    score_weights: Mapping[str, float] = field(default_factory=lambda: _frozen(_SCORE_WEIGHTS))
    correct_rate_ranges: Mapping[str, tuple[float, float]] = field(
        default_factory=lambda: _frozen(_CORRECT_RATE_RANGES)
    )
    default_correct_rate_range: tuple[float, float] = (0.3, 0.7)
    # (max usage count, score) steps; counts above the last step score 100
    usage_steps: tuple[tuple[int, int], ...] = ((0, 30), (10, 50), (50, 70), (100, 85))
    usage_max_score: int = 100


DEFAULT_CLASSIFIER_TABLES = ClassifierTables()
DEFAULT_DIFFICULTY_TABLES = DifficultyTables()
DEFAULT_SCORING_TABLES = ScoringTables()
