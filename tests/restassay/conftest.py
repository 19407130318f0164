import pytest
from greeting_service import greeting_service

from restassay import using_defaults
from restassay.test import transport


@pytest.fixture
def service():
    return greeting_service()


@pytest.fixture
def served(service):
    """Routes every exchange of the test to the greeting service."""
    with using_defaults(transport=transport(service)):
        yield service
