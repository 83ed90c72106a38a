"""
Placeholder substitution for report notifications.
"""

from fileguard.schema.report import Report

__all__ = ("placeholders", "render", "should_notify")


def placeholders(report: Report, site_name: str) -> dict[str, str]:
    return {
        "{site_name}": site_name,
        "{modified_files}": "\n".join(report.modified_files),
        "{unknown_files}": "\n".join(report.unknown_files),
        "{restored_files}": "\n".join(report.restored_files),
        "{restoration_failures}": "\n".join(f"{f.path}: {f.reason}" for f in report.restoration_failures),
    }


def render(template: str, report: Report, site_name: str = "") -> str:
    """Substitute known placeholders; anything else in braces is left as written."""
    text = template
    for placeholder, value in placeholders(report, site_name).items():
        text = text.replace(placeholder, value)
    return text


def should_notify(report: Report) -> bool:
    return report.has_findings
