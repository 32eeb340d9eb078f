"""
One render pass over a form.

Every render surface calls evaluate_form with the same inputs and gets the
same RenderPass back. The passes run in dependency order:

    1. conditional logic  -> visible fields
    2. calculations       -> values of calculated fields
    3. layout             -> grid positions of the visible fields
    4. recall context     -> built from visible fields + step 2 output

Templates are resolved last, through RenderPass.resolve.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from formrt.calculations import CalculationResult, calculate_fields
from formrt.layout import GridContainer, LayoutCache, LayoutEngine, SpanToken
from formrt.logic import visible_fields
from formrt.model import AnswerMap, Field, FieldPosition, Form
from formrt.recall import RecallContext, build_recall_context, resolve_recall
from formrt.url_params import strip_reserved_params
from formrt.validation import missing_required_fields

logger = logging.getLogger(__name__)


@dataclass
class RenderPass:
    """
    Everything a renderer needs for one answer state.

    Properties:
        visible_fields: Fields to render, in form order
        positions: Grid position per visible field, same order
        span_tokens: Span token per visible field id
        container: Grid container tokens
        calculations: CalculationResult per calculated field id
        recall: Context used to resolve templates
        missing_required: Visible required fields without an answer
    """

    form: Form
    visible_fields: List[Field]
    positions: List[FieldPosition]
    span_tokens: Dict[str, SpanToken]
    container: GridContainer
    calculations: Dict[str, CalculationResult]
    recall: RecallContext
    missing_required: List[Field] = field(default_factory=list)

    def resolve(self, template: Optional[str]) -> str:
        return resolve_recall(template, self.recall)

    def position_of(self, field_id: str) -> Optional[FieldPosition]:
        for position in self.positions:
            if position.id == field_id:
                return position
        return None

    def resolved_texts(self) -> Dict[str, str]:
        """
        Resolved form-level and field-level template text.

        Keys: "title", "description", "thank_you_message", "redirect_url",
        and "<field_id>.label" / ".description" / ".placeholder" for the
        visible fields.
        """
        texts = {
            "title": self.resolve(self.form.title),
            "description": self.resolve(self.form.description),
            "thank_you_message": self.resolve(self.form.thank_you_message),
            "redirect_url": self.resolve(self.form.redirect_url),
        }
        for f in self.visible_fields:
            texts[f"{f.id}.label"] = self.resolve(f.label)
            texts[f"{f.id}.description"] = self.resolve(f.description)
            texts[f"{f.id}.placeholder"] = self.resolve(f.placeholder)
        return texts


def evaluate_form(form: Form,
                  answers: AnswerMap,
                  url_params: Optional[Mapping[str, str]] = None,
                  cache: Optional[LayoutCache] = None) -> RenderPass:
    """
    Run the full evaluation for the current answers.

    Args:
        form: Parsed form definition
        answers: Raw answers by field id (never mutated)
        url_params: Resolved external parameters (see formrt.url_params)
        cache: Layout cache owned by the caller's form session

    Returns:
        RenderPass
    """
    fields = form.ordered_fields()

    shown = visible_fields(fields, answers)
    calculations = calculate_fields(fields, answers)

    engine = LayoutEngine(form.layout, cache=cache)
    positions = engine.calculate_field_positions(shown)
    span_tokens = {p.id: engine.span_token(p) for p in positions}

    recall = build_recall_context(
        shown,
        answers,
        url_params=strip_reserved_params(url_params or {}),
        calculated=calculations,
    )

    logger.debug(
        "Evaluated form %s: %d/%d fields visible, %d calculated",
        form.id, len(shown), len(fields), len(calculations),
    )

    return RenderPass(
        form=form,
        visible_fields=shown,
        positions=positions,
        span_tokens=span_tokens,
        container=engine.container(),
        calculations=calculations,
        recall=recall,
        missing_required=missing_required_fields(shown, answers),
    )
