# src/dagflow/report/__init__.py
"""Relatórios derivados de runs."""

from .run_report import REQUIRED_SECTIONS, build_run_report, generate_run_report_md

__all__ = ["REQUIRED_SECTIONS", "build_run_report", "generate_run_report_md"]
