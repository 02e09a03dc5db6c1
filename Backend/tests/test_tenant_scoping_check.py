"""
Tests for scripts/check_tenant_scoping.py.

The application package must pass the lint in --strict mode.
"""
import importlib.util
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[2]
SCRIPT = REPO_ROOT / "scripts" / "check_tenant_scoping.py"


@pytest.fixture(scope="module")
def checker():
    spec = importlib.util.spec_from_file_location("check_tenant_scoping", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def severities(checker, source: str) -> list[str]:
    return [f.severity for f in checker.scan_source(source, Path("example.py"))]


def test_hardcoded_store_id_constant(checker):
    assert severities(checker, "STORE_ID = 1") == ["CRITICAL"]


def test_hardcoded_store_id_argument(checker):
    assert severities(checker, "origin = ShippingOrigin(store_id=3, city='x')") == ["WARNING"]


def test_unscoped_package_query(checker):
    assert severities(checker, "stmt = select(PackageSpecification).where(PackageSpecification.code == code)") == ["HIGH"]


def test_package_query_scoped_on_next_line(checker):
    source = (
        "stmt = select(PackageSpecification).where(\n"
        "    PackageSpecification.store_id == store.store_id\n"
        ")"
    )

    assert severities(checker, source) == []


def test_scoped_select_is_clean(checker):
    assert severities(checker, "stmt = scoped_select(ShippingOrigin, store.store_id)") == []


def test_suppression_comment(checker):
    assert severities(checker, "select(ShippingOrigin)  # noqa: tenant-scoping") == []


def test_excluded_paths(checker):
    assert checker.should_exclude(Path("tenancy/queries.py"))
    assert checker.should_exclude(Path("core/config.py"))
    assert not checker.should_exclude(Path("shipping_facade.py"))


def test_app_package_passes_strict_mode(checker, capsys):
    assert checker.main(["--strict", "--path", str(REPO_ROOT / "Backend" / "app")]) == 0
