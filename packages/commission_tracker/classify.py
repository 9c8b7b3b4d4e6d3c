"""Rule-based activity classification for carrier commission rows.

Carrier exports disagree on how they label activity: some send an explicit
code (``ACT``, ``DEACT``, ``RESID``), some only a free-text note
(``Component:Upfront``), some hide it in the cycle label. The classifier
folds all of that into one of three categories using an ordered rule table.

Rules are evaluated top to bottom and the first match wins:

1. DEACT: reversal language in the code or note, or a negative amount.
2. ACT: activation/upfront language in the code, note or cycle.
3. RESIDUAL: residual/spiff/recurring language in the code or note.
4. Otherwise RESIDUAL.

Reversals are checked first so a negative "residual chargeback" resolves to
DEACT. Short codes (``ACT``, ``DEACT``, ``RESIDUAL``) match on word
boundaries so ``ACT`` never fires inside ``DEACT`` or ``CONTRACT``.

New carrier vocabularies are added by extending the rule table, not by
touching control flow: pass ``rules=DEFAULT_RULES + (my_rule,)``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .models import ActivityType, ClassifiedTransaction, TransactionLike
from .normalizers import parse_amount

DEFAULT_CATEGORY = ActivityType.RESIDUAL
DEFAULT_RULE_NAME = "default"


@dataclass(frozen=True, slots=True)
class ClassificationInput:
    """Pre-normalized view of the fields the rules inspect.

    ``raw_type`` is upper-cased; ``note`` and ``cycle`` are lower-cased.
    """

    raw_type: str
    note: str
    cycle: str
    amount: Decimal

    @classmethod
    def build(cls, raw_type: Any, note: Any, cycle: Any, amount: Any) -> ClassificationInput:
        return cls(
            raw_type=str(raw_type or "").strip().upper(),
            note=str(note or "").lower(),
            cycle=str(cycle or "").lower(),
            amount=amount if isinstance(amount, Decimal) else parse_amount(amount),
        )


type Predicate = Callable[[ClassificationInput], bool]


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    name: str
    category: ActivityType
    predicate: Predicate

    def matches(self, item: ClassificationInput) -> bool:
        return self.predicate(item)


# ---------------------------------------------------------------------------
# Predicate builders
# ---------------------------------------------------------------------------


def type_has_word(*words: str) -> Predicate:
    """Raw code contains any of ``words`` as a whole word."""

    pattern = re.compile(r"\b(?:" + "|".join(re.escape(w.upper()) for w in words) + r")\b")
    return lambda item: pattern.search(item.raw_type) is not None


def type_contains(*tokens: str) -> Predicate:
    upper = tuple(t.upper() for t in tokens)
    return lambda item: any(t in item.raw_type for t in upper)


def note_contains(*tokens: str) -> Predicate:
    lower = tuple(t.lower() for t in tokens)
    return lambda item: any(t in item.note for t in lower)


def cycle_contains(*tokens: str) -> Predicate:
    lower = tuple(t.lower() for t in tokens)
    return lambda item: any(t in item.cycle for t in lower)


def _negative_amount(item: ClassificationInput) -> bool:
    return item.amount < 0


_UPFRONT_VARIANTS = ("upfront", "up front", "up-front")


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    # Reversals
    ClassificationRule("deact-code", ActivityType.DEACT, type_has_word("DEACT")),
    ClassificationRule(
        "deact-code-reversal",
        ActivityType.DEACT,
        type_contains("CHARGEBACK", "CLAWBACK", "DEACTIVATION"),
    ),
    ClassificationRule(
        "deact-note", ActivityType.DEACT, note_contains("chargeback", "clawback", "deact")
    ),
    ClassificationRule("deact-negative-amount", ActivityType.DEACT, _negative_amount),
    # Activations / upfronts
    ClassificationRule("act-code", ActivityType.ACT, type_has_word("ACT")),
    ClassificationRule(
        "act-code-upfront",
        ActivityType.ACT,
        type_contains("ACTIVATION", "UPFRONT", "UP FRONT", "UP-FRONT"),
    ),
    ClassificationRule(
        "act-note",
        ActivityType.ACT,
        note_contains(
            "activation",
            *_UPFRONT_VARIANTS,
            "component:upfront",
            "product type:gross adds",
        ),
    ),
    ClassificationRule("act-cycle", ActivityType.ACT, cycle_contains(*_UPFRONT_VARIANTS)),
    # Residuals / spiffs
    ClassificationRule("residual-code", ActivityType.RESIDUAL, type_has_word("RESIDUAL")),
    ClassificationRule(
        "residual-code-token", ActivityType.RESIDUAL, type_contains("RESID", "SPIF")
    ),
    ClassificationRule(
        "residual-note",
        ActivityType.RESIDUAL,
        note_contains("spif", "residual", "recurring", "monthly"),
    ),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def explain_classification(
    raw_type: Any,
    note: Any,
    cycle: Any,
    amount: Any,
    *,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> tuple[ActivityType, str]:
    """Return ``(category, rule_name)`` for the first rule that fires.

    ``rule_name`` is ``"default"`` when no rule matched.
    """

    item = ClassificationInput.build(raw_type, note, cycle, amount)
    for rule in rules:
        if rule.matches(item):
            return rule.category, rule.name
    return DEFAULT_CATEGORY, DEFAULT_RULE_NAME


def classify(
    raw_type: Any,
    note: Any,
    cycle: Any,
    amount: Any,
    *,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> ActivityType:
    """Classify one commission event as ACT, RESIDUAL or DEACT.

    Pure: identical inputs always yield the same category.
    """

    category, _rule = explain_classification(raw_type, note, cycle, amount, rules=rules)
    return category


def _field(tx: TransactionLike, name: str) -> Any:
    if isinstance(tx, Mapping):
        return tx.get(name)
    return getattr(tx, name, None)


def classify_transaction(
    tx: TransactionLike,
    *,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> ClassifiedTransaction:
    """Classify a stored transaction and derive its aggregation facets.

    ``tx`` may be a mapping or any object exposing ``activity_type``,
    ``note``, ``cycle`` and ``amount`` (ORM rows included).
    """

    amount = parse_amount(_field(tx, "amount"))
    category = classify(
        _field(tx, "activity_type"),
        _field(tx, "note"),
        _field(tx, "cycle"),
        amount,
        rules=rules,
    )

    is_chargeback = amount < 0 or category is ActivityType.DEACT
    is_upfront = category is ActivityType.ACT and amount > 0 and not is_chargeback
    is_monthly = category is ActivityType.RESIDUAL and amount > 0 and not is_chargeback

    return ClassifiedTransaction(
        amount=amount,
        category=category,
        is_upfront=is_upfront,
        is_monthly=is_monthly,
        is_chargeback=is_chargeback,
    )


__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_RULES",
    "ClassificationInput",
    "ClassificationRule",
    "classify",
    "classify_transaction",
    "cycle_contains",
    "explain_classification",
    "note_contains",
    "type_contains",
    "type_has_word",
]
