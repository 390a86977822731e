import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from storefront.domain import storefront
    from storefront.utils.db import reset_data

    reset_data(storefront)


@pytest.fixture()
def admin_auth():
    from storefront.identity.auth import AuthContext
    from storefront.identity.management import bootstrap_admin

    bootstrap_admin("admin-001")
    return AuthContext(user_id="admin-001", is_admin=True)


@pytest.fixture()
def customer_auth():
    from storefront.identity.auth import AuthContext

    return AuthContext(user_id="user-001")


@pytest.fixture()
def make_category():
    from protean import current_domain

    from storefront.catalogue.category import Category

    def _make(name="Electrónica", **overrides):
        category = Category.create(name=name, **overrides)
        current_domain.repository_for(Category).add(category)
        return category

    return _make


@pytest.fixture()
def make_product():
    from protean import current_domain

    from storefront.catalogue.product import Product

    def _make(name="Auriculares Wireless", price="10.00", stock=10, **overrides):
        product = Product.create(name=name, price=price, stock=stock, **overrides)
        current_domain.repository_for(Product).add(product)
        return product

    return _make
