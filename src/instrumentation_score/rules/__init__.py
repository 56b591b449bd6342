# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Rule documents, exclusions and the rule evaluation engine."""

from instrumentation_score.rules.engine_rules import (
    RuleEngine,
    RuleEvaluationError,
    evaluate_rules,
)
from instrumentation_score.rules.filter_exclusion import ExclusionFilter
from instrumentation_score.rules.loader_rules import (
    RuleSetIssue,
    RuleSetLoader,
    RuleSetLoadError,
    load_rule_set,
)
from instrumentation_score.rules.model_compiled_rules import (
    CompiledCondition,
    CompiledExclusion,
    CompiledRule,
    CompiledValidator,
    IntegerValue,
    NumberValue,
    PatternValue,
    RuleSet,
    StringValue,
)
from instrumentation_score.rules.model_rule_result import (
    ModelRuleResult,
    ModelValidatorStat,
)
from instrumentation_score.rules.model_rules_config import (
    EnumConditionField,
    EnumConditionOperator,
    EnumDataSource,
    EnumImpact,
    EnumValidatorType,
    ModelConditionConfig,
    ModelExclusionEntry,
    ModelRuleDefinition,
    ModelRulesConfig,
    ModelValidatorConfig,
)

__all__ = [
    "CompiledCondition",
    "CompiledExclusion",
    "CompiledRule",
    "CompiledValidator",
    "EnumConditionField",
    "EnumConditionOperator",
    "EnumDataSource",
    "EnumImpact",
    "EnumValidatorType",
    "ExclusionFilter",
    "IntegerValue",
    "ModelConditionConfig",
    "ModelExclusionEntry",
    "ModelRuleDefinition",
    "ModelRuleResult",
    "ModelRulesConfig",
    "ModelValidatorConfig",
    "ModelValidatorStat",
    "NumberValue",
    "PatternValue",
    "RuleEngine",
    "RuleEvaluationError",
    "RuleSet",
    "RuleSetIssue",
    "RuleSetLoadError",
    "RuleSetLoader",
    "StringValue",
    "evaluate_rules",
    "load_rule_set",
]
