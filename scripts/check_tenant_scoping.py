#!/usr/bin/env python3
"""
Multi-tenancy scoping lint check.

This script scans the codebase for common multi-tenancy violations:
1. Hardcoded store_id constants
2. Shipping configuration queries without a store_id filter
3. Hardcoded store codes outside the settings

USAGE:
    python scripts/check_tenant_scoping.py

    # Or with verbose output
    python scripts/check_tenant_scoping.py -v

    # In CI
    python scripts/check_tenant_scoping.py --strict

EXIT CODES:
    0 - No issues found (or only warnings)
    1 - Critical/high issues found in --strict mode
"""

import argparse
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

# ────────────────────────────────────────────────────────────────
# Configuration
# ────────────────────────────────────────────────────────────────

SCAN_ROOT = Path(__file__).parent.parent / "Backend" / "app"

# Files/directories to exclude
EXCLUDE_PATTERNS = [
    "__pycache__",
    ".pyc",
    "tenancy/",  # Scoped query helpers live here
    "core/config.py",
    "test_",
]

# (pattern, severity, description)
BAD_PATTERNS: List[Tuple[str, str, str]] = [
    (
        r"^[A-Z_]*STORE_ID\s*=\s*\d+",
        "CRITICAL",
        "Hardcoded STORE_ID constant - should use StoreContext resolution",
    ),
    (
        r"store_id\s*=\s*\d+[,\)\s]",
        "WARNING",
        "Hardcoded store_id - should use StoreContext",
    ),
    (
        r"select\(ShippingOrigin\)(?!.*store_id)",
        "HIGH",
        "ShippingOrigin query without store_id filter - potential cross-tenant leak",
    ),
    (
        r"select\(PackageSpecification\)(?!.*store_id)",
        "HIGH",
        "PackageSpecification query without store_id filter - potential cross-tenant leak",
    ),
    (
        r"select\(StoreMember\)(?!.*(store_id|user_id))",
        "MEDIUM",
        "StoreMember query without store_id or user_id filter",
    ),
    (
        r"""["']DEFAULT["']""",
        "INFO",
        "Hardcoded default store code - use Settings.default_store_code",
    ),
]

# Patterns that are OK (suppress false positives)
IGNORE_PATTERNS = [
    r"#.*store_id",
    r"store_id: int",
    r"store_id=store_id",
    r"noqa:\s*tenant-scoping",
    r"store_id=store\.store_id",
    r"store_id=store\.id",
    r"\.store_id ==",
]

SCOPED_CONTEXT = re.compile(r"\.store_id\s*==|store_id\s*=\s*store\.(store_)?id|scoped_select\(")


# ────────────────────────────────────────────────────────────────
# Data Classes
# ────────────────────────────────────────────────────────────────

@dataclass
class Finding:
    """A single tenant scoping issue."""

    file: Path
    line_num: int
    line_text: str
    severity: str
    description: str

    def __str__(self):
        return f"{self.severity}: {self.file}:{self.line_num} - {self.description}\n  > {self.line_text.strip()}"


# ────────────────────────────────────────────────────────────────
# Scanning Logic
# ────────────────────────────────────────────────────────────────

def should_exclude(path: Path) -> bool:
    path_str = path.as_posix()
    return any(excl in path_str for excl in EXCLUDE_PATTERNS)


def should_ignore_line(line: str) -> bool:
    return any(re.search(pattern, line) for pattern in IGNORE_PATTERNS)


def scan_source(source: str, file_path: Path) -> List[Finding]:
    """Scan python source text for tenant scoping issues."""
    findings = []
    lines = source.split("\n")

    for line_num, line in enumerate(lines, 1):
        if should_ignore_line(line):
            continue

        for pattern, severity, description in BAD_PATTERNS:
            if not re.search(pattern, line):
                continue
            if severity == "HIGH":
                # Multi-line statements: look at the next 5 lines for the filter
                context_window = "\n".join(lines[line_num - 1:line_num + 5])
                if SCOPED_CONTEXT.search(context_window):
                    continue

            findings.append(Finding(
                file=file_path,
                line_num=line_num,
                line_text=line,
                severity=severity,
                description=description,
            ))

    return findings


def scan_file(file_path: Path) -> List[Finding]:
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Warning: Could not read {file_path}: {e}", file=sys.stderr)
        return []
    return scan_source(content, file_path)


def scan_directory(root: Path) -> List[Finding]:
    """Recursively scan a directory for tenant scoping issues."""
    all_findings = []

    for path in sorted(root.rglob("*.py")):
        if should_exclude(path.relative_to(root)):
            continue
        all_findings.extend(scan_file(path))

    return all_findings


# ────────────────────────────────────────────────────────────────
# Reporting
# ────────────────────────────────────────────────────────────────

SEVERITY_ORDER = ["CRITICAL", "HIGH", "MEDIUM", "WARNING", "INFO"]
SEVERITY_EMOJI = {
    "CRITICAL": "🔴",
    "HIGH": "🟠",
    "MEDIUM": "🟡",
    "WARNING": "🟣",
    "INFO": "🔵",
}


def print_report(findings: List[Finding], verbose: bool = False):
    if not findings:
        print("✅ No tenant scoping issues found!")
        return

    by_severity = {}
    for f in findings:
        by_severity.setdefault(f.severity, []).append(f)

    print("\n" + "=" * 60)
    print("MULTI-TENANCY SCOPING CHECK REPORT")
    print("=" * 60)

    print("\nSUMMARY:")
    for sev in SEVERITY_ORDER:
        count = len(by_severity.get(sev, []))
        if count > 0:
            print(f"  {SEVERITY_EMOJI.get(sev, '⚪')} {sev}: {count}")

    print(f"\nTOTAL: {len(findings)} issues")

    if verbose:
        print("\n" + "-" * 60)
        print("DETAILS:")
        print("-" * 60)

        for sev in SEVERITY_ORDER:
            if sev in by_severity:
                print(f"\n{SEVERITY_EMOJI.get(sev, '⚪')} {sev}:")
                for f in by_severity[sev]:
                    print(f"  {f.file}:{f.line_num}")
                    print(f"    {f.description}")
                    print(f"    > {f.line_text.strip()[:80]}")
    else:
        print("\nRun with -v for detailed findings.")


def blocking_findings(findings: List[Finding]) -> List[Finding]:
    return [f for f in findings if f.severity in ("CRITICAL", "HIGH")]


# ────────────────────────────────────────────────────────────────
# Main
# ────────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Check codebase for multi-tenancy scoping issues"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed findings")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 1 if critical or high issues are found (for CI)",
    )
    parser.add_argument(
        "--path",
        type=Path,
        default=SCAN_ROOT,
        help=f"Path to scan (default: {SCAN_ROOT})",
    )
    args = parser.parse_args(argv)

    if not args.path.exists():
        print(f"Error: Path {args.path} does not exist", file=sys.stderr)
        return 1

    print(f"Scanning {args.path}...")
    findings = scan_directory(args.path)
    print_report(findings, verbose=args.verbose)

    blocking = blocking_findings(findings)
    if args.strict and blocking:
        print(f"\n❌ {len(blocking)} critical/high issues found. Failing.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
