"""Source validation — fail-closed gate in front of the sprite compiler.

Every check runs over the whole source set and reports independently; the
caller decides what to do with the report.  ``IconPipeline`` aborts on any
violation before a single bundle is compiled, so a partially valid source
set never reaches the compiler.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from iconforge.core.critical import CriticalIconRegistry
from iconforge.core.svg import SvgStructureError, parse_svg
from iconforge.models.icons import Bundle, IconSource
from iconforge.models.manifest import RESERVED_MANIFEST_KEYS
from iconforge.models.reports import SizeWarning, ValidationReport, Violation

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


class ValidationError(RuntimeError):
    """Raised when the source set contains fatal violations."""

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(
            f"{len(self.violations)} validation violation(s):\n{lines}"
        )


class Validator:
    """Checks naming, placement, structure and size rules over icon sources.

    Parameters
    ----------
    registry:
        Reserved critical icon names.
    max_name_length:
        Longest permitted icon or section name.
    max_icon_bytes:
        Soft size budget per source icon.
    max_bundle_bytes:
        Soft size budget per compiled bundle.
    """

    def __init__(
        self,
        registry: CriticalIconRegistry,
        *,
        max_name_length: int = 50,
        max_icon_bytes: int = 5 * 1024,
        max_bundle_bytes: int = 100 * 1024,
    ) -> None:
        self._registry = registry
        self._max_name_length = max_name_length
        self._max_icon_bytes = max_icon_bytes
        self._max_bundle_bytes = max_bundle_bytes

    def _name_problem(self, name: str) -> str | None:
        if not NAME_PATTERN.match(name):
            return "must contain only lowercase letters, digits and hyphens"
        if len(name) > self._max_name_length:
            return f"longer than {self._max_name_length} characters"
        return None

    # ------------------------------------------------------------------
    # Source checks
    # ------------------------------------------------------------------

    def validate(self, tree: dict[str, list[IconSource]]) -> ValidationReport:
        """Validate every source in *tree* and return the full report."""
        violations: list[Violation] = []
        warnings: list[SizeWarning] = []

        for section in sorted(tree):
            problem = self._name_problem(section)
            if problem is None and section in RESERVED_MANIFEST_KEYS:
                problem = "is a reserved manifest key"
            if problem:
                violations.append(
                    Violation(
                        code="bad-section",
                        section=section,
                        message=f"section name {section!r} {problem}",
                    )
                )

            seen: set[str] = set()
            for source in tree[section]:
                violations.extend(self._check_source(source, seen))
                seen.add(source.name)
                if source.byte_size > self._max_icon_bytes:
                    warnings.append(
                        SizeWarning(
                            section=section,
                            name=source.name,
                            byte_size=source.byte_size,
                            limit=self._max_icon_bytes,
                            message=(
                                f"icon is {source.byte_size} bytes, "
                                f"over the {self._max_icon_bytes} byte budget"
                            ),
                        )
                    )

        for warning in warnings:
            logger.warning("%s/%s: %s", warning.section, warning.name, warning.message)
        for violation in violations:
            logger.error("%s", violation)

        return ValidationReport(violations=violations, warnings=warnings)

    def _check_source(self, source: IconSource, seen: set[str]) -> list[Violation]:
        found: list[Violation] = []

        def add(code: str, message: str) -> None:
            found.append(
                Violation(code=code, section=source.section, name=source.name, message=message)
            )

        if source.name in self._registry:
            add(
                "reserved-name",
                "critical icons are embedded inline and must not be placed in a section",
            )

        problem = self._name_problem(source.name)
        if problem:
            add("bad-name", f"icon name {source.name!r} {problem}")

        if source.name in seen:
            where = f" ({source.path})" if source.path else ""
            add("duplicate-name", f"icon name appears more than once in the section{where}")

        if source.decode_error:
            add("bad-svg", source.decode_error)
        else:
            try:
                parse_svg(source.raw_content)
            except SvgStructureError as exc:
                add("bad-svg", str(exc))

        return found

    # ------------------------------------------------------------------
    # Bundle checks
    # ------------------------------------------------------------------

    def check_bundles(self, bundles: Iterable[Bundle]) -> ValidationReport:
        """Size-budget warnings for compiled bundles (never violations)."""
        warnings: list[SizeWarning] = []
        for bundle in bundles:
            if bundle.byte_size > self._max_bundle_bytes:
                warning = SizeWarning(
                    section=bundle.section,
                    byte_size=bundle.byte_size,
                    limit=self._max_bundle_bytes,
                    message=(
                        f"bundle {bundle.file_name} is {bundle.byte_size} bytes, "
                        f"over the {self._max_bundle_bytes} byte budget"
                    ),
                )
                logger.warning("%s: %s", bundle.section, warning.message)
                warnings.append(warning)
        return ValidationReport(warnings=warnings)
