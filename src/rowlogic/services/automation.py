"""Automation trigger evaluation.

Decides whether an automation should run for an incoming event. Only the
trigger predicate lives here; scheduling and action execution belong to the
automation runner.

Condition triggers fail closed: a condition that cannot be evaluated never
runs the automation.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from rowlogic.core.logging import LoggerMixin
from rowlogic.schemas.automation import (
    TRIGGER_TYPE_ALIASES,
    TriggerConfig,
    TriggerContext,
    TriggerEvaluationResult,
    TriggerType,
)
from rowlogic.services.conditions import evaluate_filter_tree, formula_matches

_SKIP = TriggerEvaluationResult(should_run=False)


def parse_trigger_type(trigger_type: TriggerType | str) -> Optional[TriggerType]:
    """Map a trigger type or legacy name to a :class:`TriggerType`."""
    if isinstance(trigger_type, TriggerType):
        return trigger_type
    name = str(trigger_type or "").strip().lower()
    if name in TRIGGER_TYPE_ALIASES:
        return TRIGGER_TYPE_ALIASES[name]
    try:
        return TriggerType(name)
    except ValueError:
        return None


class TriggerEvaluator(LoggerMixin):
    """
    Evaluates automation triggers against events.

    Events are dicts with ``record`` (the row after the change),
    ``old_record`` (for updates) and ``payload`` (for webhooks).
    """

    def evaluate(
        self,
        trigger_type: TriggerType | str,
        config: TriggerConfig | Mapping[str, Any] | None,
        event: Mapping[str, Any] | None = None,
    ) -> TriggerEvaluationResult:
        """
        Decide whether a trigger fires for an event.

        Args:
            trigger_type: Trigger type (legacy names accepted)
            config: Trigger configuration
            event: Event data

        Returns:
            Result with ``should_run`` and, when it runs, the action context
        """
        event = event or {}
        kind = parse_trigger_type(trigger_type)
        if kind is None:
            self.logger.warning(f"Unknown trigger type: {trigger_type}")
            return _SKIP

        try:
            if not isinstance(config, TriggerConfig):
                config = TriggerConfig.model_validate(config or {})
        except ValidationError as e:
            self.logger.warning(f"Invalid trigger config: {e.errors()[0]['msg']}")
            return _SKIP

        record = dict(event.get("record") or {})

        if kind in (TriggerType.RECORD_UPDATED, TriggerType.FIELD_CHANGED):
            old_record = dict(event.get("old_record") or {})
            if not self._watched_fields_changed(config, kind, old_record, record):
                return _SKIP
            data = {"old": old_record, "new": record, **record}
        elif kind is TriggerType.RECORD_MATCHES_CONDITIONS:
            if not self._condition_holds(config, record):
                return _SKIP
            data = record
        elif kind is TriggerType.SCHEDULED:
            data = {}
        elif kind is TriggerType.WEBHOOK_RECEIVED:
            data = dict(event.get("payload") or {})
        else:
            data = record

        # Optional extra gate on any record trigger
        if config.conditions is not None and kind is not TriggerType.RECORD_MATCHES_CONDITIONS:
            if not evaluate_filter_tree(config.conditions, record, config.fields):
                return _SKIP

        record_id = record.get("id")
        return TriggerEvaluationResult(
            should_run=True,
            context=TriggerContext(
                trigger_type=kind,
                trigger_data=data,
                table_id=config.table_id,
                record_id=str(record_id) if record_id is not None else None,
            ),
        )

    def _watched_fields_changed(
        self,
        config: TriggerConfig,
        kind: TriggerType,
        old_record: dict[str, Any],
        record: dict[str, Any],
    ) -> bool:
        if not config.watch_fields:
            # A field-changed trigger with nothing to watch never fires
            return kind is TriggerType.RECORD_UPDATED
        return any(old_record.get(f) != record.get(f) for f in config.watch_fields)

    def _condition_holds(self, config: TriggerConfig, record: dict[str, Any]) -> bool:
        if config.formula and config.formula.strip():
            holds = formula_matches(config.formula, record, config.fields)
        elif config.conditions is not None:
            holds = evaluate_filter_tree(config.conditions, record, config.fields)
        else:
            self.logger.info("Condition trigger has neither formula nor conditions")
            return False

        if not holds:
            self.logger.debug("Trigger condition not met")
        return holds


_evaluator = TriggerEvaluator()


def evaluate_trigger(
    trigger_type: TriggerType | str,
    config: TriggerConfig | Mapping[str, Any] | None,
    event: Mapping[str, Any] | None = None,
) -> TriggerEvaluationResult:
    """Decide whether an automation trigger fires for an event."""
    return _evaluator.evaluate(trigger_type, config, event)
