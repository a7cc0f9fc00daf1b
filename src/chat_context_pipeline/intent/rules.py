# chat_context_pipeline/intent/rules.py
"""
Locale rule sets for intent classification and complexity scoring.

A rule set is plain data: an ordered list of intent patterns plus the
vocabulary the complexity score looks for. The classifier never knows
which languages exist; it asks a RuleRegistry. Adding a locale means
building a LocaleRuleSet and registering it.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, PrivateAttr

from chat_context_pipeline.models.enums import Language, QueryIntent

# Fixed priority: the most specific signal wins even when others also match.
INTENT_PRIORITY: tuple[QueryIntent, ...] = (
    QueryIntent.FACTUAL,
    QueryIntent.SYNTHESIS,
    QueryIntent.EXPLORATION,
    QueryIntent.COMPARISON,
)


class IntentRule(BaseModel):
    """Regex patterns that signal one intent. Any match is a hit."""

    intent: QueryIntent
    patterns: list[str] = Field(default_factory=list)

    _compiled: list[re.Pattern[str]] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context) -> None:
        self._compiled = [re.compile(p, re.IGNORECASE) for p in self.patterns]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self._compiled)


class LocaleRuleSet(BaseModel):
    """Intent rules and complexity vocabulary for one language."""

    language: Language
    rules: list[IntentRule] = Field(default_factory=list)
    conjunctions: list[str] = Field(default_factory=list)
    precision_words: list[str] = Field(default_factory=list)
    comparison_words: list[str] = Field(default_factory=list)
    topic_keywords: list[str] = Field(default_factory=list)

    def rule_for(self, intent: QueryIntent) -> IntentRule | None:
        for rule in self.rules:
            if rule.intent == intent:
                return rule
        return None

    def match(self, intent: QueryIntent, text: str) -> bool:
        rule = self.rule_for(intent)
        return rule is not None and rule.matches(text)


class RuleRegistry:
    """Rule sets keyed by language. Registration order is the fallback order."""

    def __init__(self, rule_sets: list[LocaleRuleSet] | None = None):
        self._rule_sets: dict[Language, LocaleRuleSet] = {}
        for rule_set in rule_sets or []:
            self.register(rule_set)

    def register(self, rule_set: LocaleRuleSet) -> None:
        self._rule_sets[rule_set.language] = rule_set

    def get(self, language: Language) -> LocaleRuleSet | None:
        return self._rule_sets.get(language)

    def all(self) -> list[LocaleRuleSet]:
        return list(self._rule_sets.values())

    def ordered_for(self, language: Language) -> list[LocaleRuleSet]:
        """The language's own rule set first, then every other registered one."""
        primary = self._rule_sets.get(language)
        rest = [rs for lang, rs in self._rule_sets.items() if lang != language]
        return [primary, *rest] if primary is not None else rest

    def __contains__(self, language: object) -> bool:
        return language in self._rule_sets

    def __len__(self) -> int:
        return len(self._rule_sets)


# ============================================================================
# Built-in rule sets
# ============================================================================

POLISH_RULES = LocaleRuleSet(
    language=Language.POLISH,
    rules=[
        IntentRule(
            intent=QueryIntent.FACTUAL,
            patterns=[
                r"\bile\b(?!\s+razy)",
                r"\bkiedy\b",
                r"\bgdzie\b",
                r"\bkto\b",
                r"\bkt[óo]r[aey]\b",
                r"\bjakie\b(?!\s+s[ąa]\b)",
                r"\bjaki\b(?!\s+spos[óo]b)",
                r"\bdat[aęy]\b",
                r"\brok(u|ów|i)?\b",
                r"\bliczb[aęy]\b",
                r"\bwiek\b",
                r"\bczas\b",
                r"\bdługo\b",
                r"\bdużo\b",
                r"\bmało\b",
                r"\bkonkretnie\b",
                r"\bdokładnie\b",
                r"\bprecyzyjnie\b",
                r"\bfaktycznie\b",
            ],
        ),
        IntentRule(
            intent=QueryIntent.SYNTHESIS,
            patterns=[
                r"\bco potrafisz\b",
                r"\bjakie s[ąa]\b.*\bumiejętności",
                r"\banaliz",
                r"\bsyntez",
                r"\bumiejętności",
                r"\bkompetencj",
                r"\bprzegląd",
                r"\bpodsumuj",
                r"\boceń\b",
                r"\bjak wyglądają\b",
                r"\bprzedstaw",
                r"\bscharakteryzuj",
            ],
        ),
        IntentRule(
            intent=QueryIntent.EXPLORATION,
            patterns=[
                r"\bopowiedz",
                r"\bwięcej\b",
                r"\bszczegół",
                r"\bjak\b.*\bproces",
                r"\bdlaczego\b",
                r"\bhistori",
                r"\bmetodologi",
                r"\brozwi[ńn]",
                r"\bwyjaśnij",
                r"\bopisz\b",
                r"\bco się działo\b",
                r"\bjak to\b",
                r"\bw jaki sposób\b",
            ],
        ),
        IntentRule(
            intent=QueryIntent.COMPARISON,
            patterns=[
                r"\bporówn",
                r"\bversus\b",
                r"\bvs\b",
                r"\bróżnic",
                r"\bróżnią się\b",
                r"\blepsze\b",
                r"\bgorsze\b",
                r"\bwybór\b",
                r"\balternatyw",
                r"\bzestaw",
                r"\bpodobn",
                r"\binne\b",
            ],
        ),
    ],
    conjunctions=["oraz", "ale", "czy", "lub", "i"],
    precision_words=["dokładnie", "konkretnie", "precyzyjnie", "szczegółowo"],
    comparison_words=["różnice", "podobieństwa", "lepsze", "gorsze"],
    topic_keywords=["projekt", "zespół", "doświadczenie"],
)

ENGLISH_RULES = LocaleRuleSet(
    language=Language.ENGLISH,
    rules=[
        IntentRule(
            intent=QueryIntent.FACTUAL,
            patterns=[
                r"\bhow\s+(much|many|long|old)\b",
                r"\bwhen\b",
                r"\bwhere\b",
                r"\bwho\b",
                r"\bwhat\b(?!\s+(are|can|do|does|did|have|happened)\b)",
                r"\bwhich\b",
                r"\bdates?\b",
                r"\byears?\b",
                r"\bnumbers?\b",
                r"\bage\b",
                r"\btime\b",
                r"\bspecific\b",
                r"\bexact(ly)?\b",
                r"\bprecise(ly)?\b",
                r"\bfacts?\b",
            ],
        ),
        IntentRule(
            intent=QueryIntent.SYNTHESIS,
            patterns=[
                r"\bwhat\b.*\b(can|are|do)\b",
                r"\bcompetenc",
                r"\bskills?\b",
                r"\bcapabilit",
                r"\boverview\b",
                r"\bsummari[sz]",
                r"\breview\b",
                r"\bpresent\b",
                r"\bcharacteri[sz]e",
                r"\banaly[sz]",
                r"\bassess",
                r"\bevaluat",
            ],
        ),
        IntentRule(
            intent=QueryIntent.EXPLORATION,
            patterns=[
                r"\btell\b.*\b(more|about)\b",
                r"\bdetail",
                r"\bhow\b.*\b(process|work)",
                r"\bwhy\b",
                r"\bhistory\b",
                r"\bmethodology\b",
                r"\bexplain",
                r"\bdescribe",
                r"\bexpand\b",
                r"\belaborate",
                r"\bwhat\b.*\bhappen",
            ],
        ),
        IntentRule(
            intent=QueryIntent.COMPARISON,
            patterns=[
                r"\bversus\b",
                r"\bvs\b",
                r"\bdiffer",
                r"\bbetter\b",
                r"\bworse\b",
                r"\bchoice\b",
                r"\balternatives?\b",
                r"\bcompar",
                r"\bcontrast",
                r"\bsimilar",
                r"\bbetween\b",
            ],
        ),
    ],
    conjunctions=["and", "or", "but"],
    precision_words=["specific", "exactly", "detailed"],
    comparison_words=["versus", "vs", "compared"],
    topic_keywords=["project", "team", "design", "experience"],
)


def default_registry() -> RuleRegistry:
    """Registry holding the built-in Polish and English rule sets."""
    return RuleRegistry([POLISH_RULES, ENGLISH_RULES])
