"""
Ordered question collection for one test, with attempt-stable shuffling.
"""
import random
from typing import Any, Dict, List, Optional, Sequence


class QuestionBank:
    """
    Immutable view over a test's questions.

    Shuffles are produced once at start and persisted on the attempt as
    ``question_order`` / ``option_order``; ``arrange`` replays them.
    """

    def __init__(self, questions: Sequence[Any]):
        self._questions = tuple(sorted(questions, key=lambda q: (q.order, str(q.id))))
        self._by_id = {q.id: q for q in self._questions}

    def __iter__(self):
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    def get(self, question_id: str) -> Optional[Any]:
        return self._by_id.get(question_id)

    @property
    def questions(self) -> List[Any]:
        return list(self._questions)

    def shuffled_order(self, rng: random.Random) -> List[str]:
        ids = [q.id for q in self._questions]
        rng.shuffle(ids)
        return ids

    def shuffled_options(self, rng: random.Random, only_types: Optional[Sequence[str]] = None) -> Dict[str, List[str]]:
        """One independent option permutation per question that has options."""
        orders: Dict[str, List[str]] = {}
        for question in self._questions:
            if only_types is not None and question.question_type not in only_types:
                continue
            ids = option_ids(question)
            if ids:
                rng.shuffle(ids)
                orders[question.id] = ids
        return orders

    def arrange(self, question_order: Optional[List[str]]) -> List[Any]:
        """
        Questions in the persisted order.

        Ids no longer in the test are skipped; questions added after the
        attempt started follow in their natural order.
        """
        if not question_order:
            return self.questions
        arranged = [self._by_id[qid] for qid in question_order if qid in self._by_id]
        seen = set(question_order)
        arranged.extend(q for q in self._questions if q.id not in seen)
        return arranged


def option_ids(question: Any) -> List[str]:
    """Ids of the options a student can reorder; for match, the right column."""
    options = question.options
    if isinstance(options, dict):
        return [str(o["id"]) for o in options.get("right") or [] if isinstance(o, dict) and "id" in o]
    if isinstance(options, list):
        return [str(o["id"]) for o in options if isinstance(o, dict) and "id" in o]
    return []


def _apply_order(items: List[dict], order: Optional[List[str]]) -> List[dict]:
    if not order:
        return items
    rank = {oid: i for i, oid in enumerate(order)}
    return sorted(items, key=lambda o: rank.get(str(o.get("id")), len(rank)))


def public_options(question: Any, order: Optional[List[str]] = None) -> Any:
    """
    Options safe to show during an attempt.

    Strips ``correctPosition`` from option lists and ``pairs`` from match
    structures, then applies the attempt's option order.
    """
    options = question.options
    if options is None:
        return None
    if isinstance(options, dict):
        left = [_strip_option(o) for o in options.get("left") or []]
        right = _apply_order([_strip_option(o) for o in options.get("right") or []], order)
        return {"left": left, "right": right}
    if isinstance(options, list):
        return _apply_order([_strip_option(o) for o in options], order)
    return options


def _strip_option(option: Any) -> Any:
    if not isinstance(option, dict):
        return option
    return {k: v for k, v in option.items() if k not in ("correctPosition", "correct_position", "isCorrect", "is_correct")}
