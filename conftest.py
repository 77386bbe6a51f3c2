import logging

import pytest

pytest_plugins = ["tests.fixtures.safari"]


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers the CLI attaches so they never outlive a test's captured streams."""
    yield
    logger = logging.getLogger("safari_artifacts")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
