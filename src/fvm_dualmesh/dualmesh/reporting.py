# -*- coding: utf-8 -*-
"""
This module provides reporting functions for dual mesh quality analysis.
"""
from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .quality import DualMeshQuality


def format_quality_summary(quality: "DualMeshQuality") -> str:
    """
    Formats a summary of the computed dual mesh quality metrics.
    """
    if not quality:
        return "Quality metrics not computed."

    report = []
    report.append(f"\n{'--- Dual Mesh Quality Metrics ---':^80}")
    report.append(_format_metric_table(quality))
    report.append(_format_connectivity_issues(quality))
    return "\n".join(report)


def _format_metric_table(quality: "DualMeshQuality") -> str:
    """Formats the table of quality metrics."""
    lines = []
    lines.append(f"  {'Metric':<30} {'Value':>15}")
    lines.append(f"  {'-'*29} {'-'*15}")
    lines.append(f"  {'Min/Max Volume Ratio':<30} {quality.min_max_volume_ratio:>15.4f}")
    lines.append(f"  {'Non-Positive Volumes':<30} {quality.n_non_positive_volumes:>15d}")
    lines.append(
        f"  {'Area Conservation Error':<30} {quality.area_conservation_error:>15.4e}"
    )
    lines.append(
        f"  {'Interior Faces w/o Normal':<30} {quality.n_zero_normal_interior_faces:>15d}"
    )
    return "\n".join(lines)


def _format_connectivity_issues(quality: "DualMeshQuality") -> str:
    """Formats any issues found."""
    lines = []
    lines.append(f"\n{'--- Validity Check ---':^80}")
    if quality.connectivity_issues:
        lines.append("  Issues Found:")
        for issue in quality.connectivity_issues:
            lines.append(f"    - {issue}")
    else:
        lines.append("  No issues found.")
    return "\n".join(lines)
