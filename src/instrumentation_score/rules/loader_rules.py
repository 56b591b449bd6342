# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Rule document loading.

Parses the rules YAML, validates it against :class:`ModelRulesConfig`, runs
the semantic checks the schema cannot express and compiles the result into
a :class:`RuleSet`. Loading is atomic: every issue found is collected and
raised together, and no partial rule set is ever returned.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from instrumentation_score.rules.model_compiled_rules import (
    DATA_SOURCE_FIELDS,
    VALIDATOR_DATA_SOURCES,
    CompiledCondition,
    CompiledExclusion,
    CompiledRule,
    CompiledValidator,
    RuleSet,
)
from instrumentation_score.rules.model_rules_config import (
    ModelExclusionEntry,
    ModelRuleDefinition,
    ModelRulesConfig,
    ModelValidatorConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class RuleSetIssue:
    """A configuration problem with actionable context.

    Attributes:
        field: Path of the offending field (e.g. ``rules[0].validators[1].type``).
        message: Human-readable description.
        line_hint: Line number, when known from YAML parsing.
    """

    field: str
    message: str
    line_hint: int | None = None

    def __str__(self) -> str:
        location = f"line {self.line_hint}: " if self.line_hint else ""
        return f"{location}{self.field}: {self.message}"


class RuleSetLoadError(Exception):
    """Raised when a rule document cannot be loaded.

    Attributes:
        issues: Every problem found in the document.
    """

    def __init__(self, issues: Sequence[RuleSetIssue], source: str | None = None) -> None:
        self.issues = list(issues)
        self.source = source
        where = f" from {source}" if source else ""
        details = "; ".join(str(issue) for issue in self.issues)
        super().__init__(
            f"Failed to load rules{where} ({len(self.issues)} issue(s)): {details}"
        )


def _format_loc(loc: Sequence[int | str]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "root"


class RuleSetLoader:
    """Load and compile rule documents.

    Usage::

        loader = RuleSetLoader()

        rule_set = loader.load_file("rules_config.yaml")
        rule_set = loader.load_yaml_string(yaml_content)
        rule_set = loader.load_dict(rules_data)

    Every method raises :class:`RuleSetLoadError` listing all issues found.
    """

    def load_file(self, path: str | Path) -> RuleSet:
        """Load a rule document from a YAML file."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            issue = RuleSetIssue(
                field="file", message=f"Cannot read rules file {str(path)!r}: {exc}"
            )
            raise RuleSetLoadError([issue], source=str(path)) from exc
        rule_set = self.load_yaml_string(content, source=str(path))
        logger.info(
            "Loaded %d rules and %d exclusions from %s",
            len(rule_set.rules),
            len(rule_set.exclusions),
            path,
        )
        return rule_set

    def load_yaml_string(self, yaml_content: str, source: str | None = None) -> RuleSet:
        """Load a rule document from a YAML string."""
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as exc:
            line_hint: int | None = None
            mark = getattr(exc, "problem_mark", None)
            if mark is not None:
                line_hint = mark.line + 1
            raise RuleSetLoadError(
                [
                    RuleSetIssue(
                        field="yaml",
                        message=f"Invalid YAML syntax: {exc}",
                        line_hint=line_hint,
                    )
                ],
                source=source,
            ) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RuleSetLoadError(
                [
                    RuleSetIssue(
                        field="root",
                        message=(
                            "Rules document must be a YAML mapping, "
                            f"got {type(data).__name__}"
                        ),
                    )
                ],
                source=source,
            )
        return self.load_dict(data, source=source)

    def load_dict(self, data: dict[str, Any], source: str | None = None) -> RuleSet:
        """Load a rule document from an already-parsed mapping."""
        try:
            config = ModelRulesConfig.model_validate(data)
        except ValidationError as exc:
            issues = [
                RuleSetIssue(
                    field=_format_loc(error.get("loc", ())),
                    message=error.get("msg", "Validation error"),
                )
                for error in exc.errors()
            ]
            raise RuleSetLoadError(issues, source=source) from exc

        issues: list[RuleSetIssue] = []
        exclusions = [
            self._compile_exclusion(i, entry, issues)
            for i, entry in enumerate(config.exclusion_list)
        ]
        rules = [
            self._compile_rule(i, rule, issues) for i, rule in enumerate(config.rules)
        ]
        if issues:
            raise RuleSetLoadError(issues, source=source)

        if not rules:
            logger.warning("Rules document%s defines no rules", f" {source}" if source else "")
        return RuleSet(
            rules=tuple(rule for rule in rules if rule is not None),
            exclusions=tuple(entry for entry in exclusions if entry is not None),
        )

    # ------------------------------------------------------------------
    # Compilation helpers; each appends to ``issues`` instead of raising
    # ------------------------------------------------------------------

    @staticmethod
    def _compile_exclusion(
        index: int, entry: ModelExclusionEntry, issues: list[RuleSetIssue]
    ) -> CompiledExclusion | None:
        pattern: re.Pattern[str] | None = None
        if entry.job_name_pattern:
            try:
                pattern = re.compile(entry.job_name_pattern)
            except re.error as exc:
                issues.append(
                    RuleSetIssue(
                        field=f"exclusion_list[{index}].job_name_pattern",
                        message=f"Invalid regex pattern {entry.job_name_pattern!r}: {exc}",
                    )
                )
                return None
        if not entry.job and pattern is None:
            logger.warning(
                "exclusion_list[%d] has neither 'job' nor 'job_name_pattern' "
                "and matches no job",
                index,
            )
        return CompiledExclusion(
            job=entry.job or None,
            pattern=pattern,
            metrics=frozenset(entry.metrics),
        )

    def _compile_rule(
        self, index: int, rule: ModelRuleDefinition, issues: list[RuleSetIssue]
    ) -> CompiledRule | None:
        before = len(issues)
        validators = [
            self._compile_validator(f"rules[{index}].validators[{j}]", validator, issues)
            for j, validator in enumerate(rule.validators)
        ]
        if len(issues) > before:
            return None
        return CompiledRule(
            rule_id=rule.rule_id,
            impact=rule.impact,
            description=rule.description,
            validators=tuple(v for v in validators if v is not None),
        )

    @staticmethod
    def _compile_validator(
        path: str, validator: ModelValidatorConfig, issues: list[RuleSetIssue]
    ) -> CompiledValidator | None:
        before = len(issues)
        expected_source = VALIDATOR_DATA_SOURCES[validator.type]
        if validator.data_source is not expected_source:
            issues.append(
                RuleSetIssue(
                    field=f"{path}.data_source",
                    message=(
                        f"Validator type {validator.type.value!r} requires data_source "
                        f"{expected_source.value!r}, got {validator.data_source.value!r}"
                    ),
                )
            )

        available = DATA_SOURCE_FIELDS[validator.data_source]
        conditions: list[CompiledCondition] = []
        for k, condition in enumerate(validator.conditions):
            condition_path = f"{path}.conditions[{k}]"
            if condition.field not in available:
                issues.append(
                    RuleSetIssue(
                        field=f"{condition_path}.field",
                        message=(
                            f"Field {condition.field.value!r} is not available in data_source "
                            f"{validator.data_source.value!r}; valid fields are "
                            f"{sorted(f.value for f in available)}"
                        ),
                    )
                )
                continue
            try:
                conditions.append(
                    CompiledCondition.compile(
                        condition.field, condition.operator, condition.value
                    )
                )
            except ValueError as exc:
                issues.append(RuleSetIssue(field=condition_path, message=str(exc)))

        if len(issues) > before:
            return None
        return CompiledValidator(
            name=validator.name,
            type=validator.type,
            data_source=validator.data_source,
            conditions=tuple(conditions),
            ui_title=validator.ui_title,
            ui_description=validator.ui_description,
            parameters=dict(validator.parameters),
        )


def load_rule_set(path: str | Path) -> RuleSet:
    """Convenience wrapper around :meth:`RuleSetLoader.load_file`."""
    return RuleSetLoader().load_file(path)


__all__ = [
    "RuleSetIssue",
    "RuleSetLoadError",
    "RuleSetLoader",
    "load_rule_set",
]
