"""Diff Reporter - Render comparison reports and parity results as JSON and Markdown."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from transcript_parity.domain.comparison import ComparisonReport, DifferenceType
from transcript_parity.utils.logger import truncate_output

if TYPE_CHECKING:
    from transcript_parity.validation.validator import ParityResults

logger = logging.getLogger(__name__)

FOOTER = "*Generated by transcript-parity*"
DETAIL_OUTPUT_LENGTH = 120


class DiffReporter:
    """
    Render comparison artifacts as strings (JSON + Markdown).

    Nothing is written to disk; callers decide where reports go.
    """

    def __init__(self, detail_length: int = DETAIL_OUTPUT_LENGTH) -> None:
        self.detail_length = detail_length

    def build_statistics(self, report: ComparisonReport) -> Dict[str, Any]:
        return {
            "total_commands": report.total_commands,
            "exact_matches": report.exact_matches,
            "close_matches": report.close_matches,
            "behavioral_differences": report.behavioral_differences,
            "status_bar_differences": report.status_bar_differences,
            "rng_differences": report.rng_differences,
            "state_divergences": report.state_divergences,
            "logic_differences": report.logic_differences,
            "parity_score": round(report.parity_score, 2),
            "logic_parity_percentage": round(report.logic_parity_percentage, 2),
            "severity": report.severity_summary.to_dict(),
            "parity_status": "PASS" if report.logic_differences == 0 else "FAIL",
        }

    def generate_json_report(self, report: ComparisonReport) -> str:
        """JSON document with metadata, statistics and every difference."""
        differences = report.classified_differences or report.differences
        document = {
            "metadata": {
                "transcript_a": report.transcript_a,
                "transcript_b": report.transcript_b,
                "generated_at": datetime.now().isoformat(),
            },
            "statistics": self.build_statistics(report),
            "differences": [d.to_dict() for d in differences],
        }
        return json.dumps(document, indent=2, default=str)

    def generate_markdown_summary(self, report: ComparisonReport) -> str:
        """Markdown summary of one transcript comparison."""
        stats = self.build_statistics(report)
        severity = stats["severity"]

        md_lines = [
            f"# Comparison Report: {report.transcript_a} vs {report.transcript_b}",
            f"**Generated:** {datetime.now().isoformat()}",
            "",
            "## Summary",
            f"- **Commands Compared:** {stats['total_commands']}",
            f"- **Exact Matches:** {stats['exact_matches']}",
            f"- **Close Matches:** {stats['close_matches']}",
            f"- **Behavioral Differences:** {stats['behavioral_differences']}",
            f"- **Status Bar Differences:** {stats['status_bar_differences']}",
            f"- **Parity Score:** {stats['parity_score']:.2f}%",
            f"- **Logic Parity:** {stats['logic_parity_percentage']:.2f}%",
            f"- **Parity Status:** {stats['parity_status']}",
            "",
            "## Severity",
            f"- **Critical:** {severity['critical']}",
            f"- **Major:** {severity['major']}",
            f"- **Minor:** {severity['minor']}",
            f"- **Formatting:** {severity['formatting']}",
            "",
        ]

        if report.classified_differences:
            md_lines.extend([
                "## Classification",
                f"- **RNG Differences:** {stats['rng_differences']}",
                f"- **State Divergences:** {stats['state_divergences']}",
                f"- **Logic Differences:** {stats['logic_differences']}",
                "",
            ])

        differences = report.classified_differences or report.differences
        if differences:
            md_lines.append("## Detailed Differences")
            md_lines.append("")
            for difference in differences:
                label = getattr(difference, "classification", None)
                tag = label.value if isinstance(label, DifferenceType) else difference.severity.value
                md_lines.extend([
                    f"### [{difference.command_index}] `{difference.command or '<start>'}` "
                    f"({tag}, {difference.severity.value}, {difference.category})",
                    f"- **Reason:** {difference.reason}",
                    f"- **Similarity:** {difference.similarity:.2f}",
                    f"- **Expected:** `{truncate_output(difference.expected, self.detail_length)}`",
                    f"- **Actual:** `{truncate_output(difference.actual, self.detail_length)}`",
                    "",
                ])
        else:
            md_lines.append("Perfect Parity")

        md_lines.extend(["", "---", FOOTER])
        return "\n".join(md_lines)

    def generate_aggregate_summary(self, results: ParityResults) -> str:
        """Markdown summary of a multi-seed run."""
        total = results.total_tests
        passed_seeds = sum(
            1 for r in results.seed_results if r.success and r.logic_differences == 0
        )

        md_lines = [
            "# Parity Validation - Aggregate Summary",
            f"**Generated:** {datetime.now().isoformat()}",
            "",
        ]

        implementation_only = [r.seed for r in results.seed_results if not r.reference_available]
        if implementation_only:
            md_lines.extend([
                "> **Implementation-only mode:** the reference interpreter was unavailable "
                f"for {len(implementation_only)} of {total} seed(s). Parity for those seeds "
                "is 100% by definition; nothing was validated against the reference.",
                "",
            ])

        md_lines.extend([
            "## Overall Results",
            f"- **Seeds Tested:** {total}",
            f"- **Seeds Without Logic Differences:** {passed_seeds}",
            f"- **Total Commands:** {results.total_commands}",
            f"- **Overall Parity:** {results.overall_parity_percentage:.2f}%",
            f"- **Logic Parity:** {results.logic_parity_percentage:.2f}%",
            f"- **Status:** {'PASSED' if results.passed else 'FAILED'}",
            "",
            "## Difference Summary",
            f"- **RNG Differences:** {results.rng_differences}",
            f"- **State Divergences:** {results.state_divergences}",
            f"- **Logic Differences:** {results.logic_differences}",
            f"- **Status Bar Differences:** {results.status_bar_differences}",
            "",
            "## Per-Seed Results",
            "",
            "| Seed | Commands | Parity | Logic Parity | RNG | State | Logic | Status |",
            "|---|---|---|---|---|---|---|---|",
        ])

        for result in results.seed_results:
            md_lines.append(
                f"| {result.seed} | {result.total_commands} | "
                f"{result.parity_percentage:.2f}% | {result.logic_parity_percentage:.2f}% | "
                f"{result.rng_differences} | {result.state_divergences} | "
                f"{result.logic_differences} | {self._seed_status(result)} |"
            )

        errors: List[str] = [
            f"- Seed {r.seed}: {r.error}" for r in results.seed_results if not r.success
        ]
        if errors:
            md_lines.extend(["", "## Failures", *errors])

        md_lines.extend(["", "---", FOOTER])
        return "\n".join(md_lines)

    @staticmethod
    def _seed_status(result) -> str:
        if not result.success:
            return "ERROR"
        if not result.reference_available:
            return "IMPL-ONLY"
        return "PASS" if result.logic_differences == 0 else "FAIL"

    def generate_seed_lines(self, results: ParityResults) -> Sequence[str]:
        """One plain-text line per seed, for console output."""
        return [
            f"seed {r.seed}: {self._seed_status(r)} "
            f"(parity {r.parity_percentage:.2f}%, logic differences {r.logic_differences})"
            for r in results.seed_results
        ]
