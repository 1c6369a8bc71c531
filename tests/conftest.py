"""Shared pytest fixtures for ghdepup tests."""

import pytest

from ghdepup.core.flat_config import parse_flat_config

CONFIG_CONTENT = """
# this config should be kept parsable by POSIX sh, make, ini and toml
HYPER_GH_PROJECT="hyperium/hyper"
HYPER_GH_TAG_PREFIX="v"
HYPER_GH_VERSION_REQ=">=0.14, <1"
HYPER_GH_VERSION="0.14.26"

HYPER_TLS_GH_PROJECT="hyperium/hyper-tls"
HYPER_TLS_GH_TAG_PREFIX="v"
HYPER_TLS_GH_VERSION_REQ=">=0.5"
HYPER_TLS_GH_VERSION="0.5.0"
"""


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config_text():
    return CONFIG_CONTENT


@pytest.fixture
def config():
    return parse_flat_config(CONFIG_CONTENT)
