"""Application services: matching, variable resolution, rendering, step execution, execution log."""

from fixlify.application.services.condition_evaluator import ConditionEvaluator
from fixlify.application.services.event_derivation import derive_trigger_events
from fixlify.application.services.execution_log import ExecutionLogService
from fixlify.application.services.step_executor import StepExecutor, StepRun
from fixlify.application.services.template_renderer import TemplateRenderer
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.services.variable_resolver import KNOWN_VARIABLES, VariableResolver

__all__ = [
    "KNOWN_VARIABLES",
    "ConditionEvaluator",
    "ExecutionLogService",
    "StepExecutor",
    "StepRun",
    "TemplateRenderer",
    "TriggerMatcher",
    "VariableResolver",
    "derive_trigger_events",
]
