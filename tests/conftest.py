import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the Protean config overlay before any domain is initialized."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session")
def fulfillment_bed():
    from fulfillment.domain import fulfillment

    bed = DomainFixture(fulfillment)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def run_around_tests(ordering_bed, fulfillment_bed):
    """Clean up both domains' stores after every test.

    Order tests reach the fulfillment store through the courier adapter, so
    both domains are reset whichever context the test ran in.
    """
    yield

    from fulfillment.domain import fulfillment
    from ordering.domain import ordering

    for domain in (ordering, fulfillment):
        with domain.domain_context():
            for _, provider in domain.providers.items():
                provider._data_reset()

            for _, broker in domain.brokers.items():
                broker._data_reset()

            domain.event_store.store._data_reset()
