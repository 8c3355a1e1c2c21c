"""
Root conftest.py for pytest configuration

Applies primary and domain markers to tests based on their location.
"""
import pytest

PRIMARY_MARKERS = {
    "unit": "Fast tests with provider doubles and temporary storage",
    "integration": "Tests that talk to real external services",
}

DOMAIN_MARKERS = {
    "core": "Configuration, logging and error tests",
    "d1_artifacts": "Artifact storage and preview tests",
    "d2_uploads": "Upload intake tests",
    "d7_storefront": "Storefront, checkout and webhook tests",
    "d8_downloads": "Download gateway tests",
    "d9_delivery": "Email delivery tests",
}


def apply_auto_markers(item: pytest.Item) -> None:
    """Apply markers to a test item based on its location"""
    test_path = str(item.fspath)
    existing_markers = {mark.name for mark in item.iter_markers()}

    if not existing_markers & set(PRIMARY_MARKERS):
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)

    for domain in DOMAIN_MARKERS:
        if f"/{domain}/" in test_path and domain not in existing_markers:
            item.add_marker(getattr(pytest.mark, domain))


def pytest_collection_modifyitems(config, items):
    for item in items:
        apply_auto_markers(item)


def pytest_configure(config):
    """Register primary and domain markers"""
    for marker_name, description in {**PRIMARY_MARKERS, **DOMAIN_MARKERS}.items():
        config.addinivalue_line("markers", f"{marker_name}: {description}")
