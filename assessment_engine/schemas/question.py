"""
Question content as a tagged union keyed by ``question_type``.

Rows store ``options`` and ``correct_answer`` as loose JSON; grading and the
start payload go through ``parse_question_content`` so each question type is
handled with its own shape.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from assessment_engine.schemas.common import CamelModel


class ChoiceOption(CamelModel):
    """Labeled option."""

    id: str
    text: str = ""
    media_url: Optional[str] = None
    correct_position: Optional[int] = None  # Reorder questions only


class MatchPair(CamelModel):
    left: str
    right: str


class MatchOptions(CamelModel):
    """Two columns plus the authoritative pairing."""

    left: List[ChoiceOption] = Field(default_factory=list)
    right: List[ChoiceOption] = Field(default_factory=list)
    pairs: List[MatchPair] = Field(default_factory=list)


class SingleValueContent(CamelModel):
    question_type: Literal["multiple_choice", "true_false"]
    options: List[ChoiceOption] = Field(default_factory=list)
    correct_answer: Any = None


class MultipleAnswerContent(CamelModel):
    question_type: Literal["multiple_answer"]
    options: List[ChoiceOption] = Field(default_factory=list)
    correct_answer: List[str] = Field(default_factory=list)


class UngradedContent(CamelModel):
    question_type: Literal["open_ended", "poll"]
    options: List[ChoiceOption] = Field(default_factory=list)
    correct_answer: Any = None


class OrderingContent(CamelModel):
    question_type: Literal["reorder", "sequencing"]
    options: List[ChoiceOption] = Field(default_factory=list)
    correct_answer: List[str] = Field(default_factory=list)

    def expected_order(self) -> List[str]:
        if self.correct_answer:
            return list(self.correct_answer)
        positioned = [o for o in self.options if o.correct_position is not None]
        return [o.id for o in sorted(positioned, key=lambda o: o.correct_position)]


class MatchContent(CamelModel):
    question_type: Literal["match"]
    options: MatchOptions = Field(default_factory=MatchOptions)
    correct_answer: Dict[str, str] = Field(default_factory=dict)

    def expected_pairs(self) -> Dict[str, str]:
        if self.correct_answer:
            return dict(self.correct_answer)
        return {pair.left: pair.right for pair in self.options.pairs}


class DragDropContent(CamelModel):
    """Either a placement mapping (match-like) or a target ordering."""

    question_type: Literal["drag_drop"]
    options: Union[MatchOptions, List[ChoiceOption], None] = None
    correct_answer: Union[Dict[str, str], List[str], None] = None


QuestionContent = Annotated[
    Union[
        SingleValueContent,
        MultipleAnswerContent,
        UngradedContent,
        OrderingContent,
        MatchContent,
        DragDropContent,
    ],
    Field(discriminator="question_type"),
]

_content_adapter: TypeAdapter = TypeAdapter(QuestionContent)


def parse_question_content(question: Any) -> QuestionContent:
    """
    Build the typed content for a question row.

    Raises:
        pydantic.ValidationError: If the stored options/answer do not fit the type
    """
    raw = {"questionType": question.question_type}
    if question.options is not None:
        raw["options"] = question.options
    if question.correct_answer is not None:
        raw["correctAnswer"] = question.correct_answer
    return _content_adapter.validate_python(raw)
