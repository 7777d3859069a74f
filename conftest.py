"""Repository-wide pytest configuration."""


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: pure-Python pairing checks; deselect with -m 'not slow'"
    )
