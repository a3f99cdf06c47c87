"""
Shared fixtures:
- connection options matching a demo server
- a scripted FakeTransport and a client wired to it
- sample collection envelopes in both namespaced and lean shapes
"""
import pytest

from maximo_client import Maximo
from helpers import FakeTransport


@pytest.fixture
def options_dict():
    """Connection options for a demo server."""
    return {
        "protocol": "https",
        "hostname": "demo.maximo",
        "port": 443,
        "user": "u",
        "password": "p",
        "auth_scheme": "/maximo",
    }


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def maximo(options_dict, fake_transport):
    """Client using the scripted transport."""
    return Maximo(options_dict, transport=fake_transport)


@pytest.fixture
def asset_page_one():
    """First MXASSET page, namespaced keys, with a next-page link."""
    return {
        "rdfs:member": [
            {
                "rdf:about": "https://demo.maximo:443/maximo/oslc/os/mxasset/_QkVERk9SRC8xMDAx",
                "spi:assetnum": "1001",
                "spi:status": "OPERATING",
            },
            {
                "rdf:about": "https://demo.maximo:443/maximo/oslc/os/mxasset/_QkVERk9SRC8xMDAy",
                "spi:assetnum": "1002",
                "spi:status": "OPERATING",
            },
        ],
        "oslc:responseInfo": {
            "oslc:totalCount": 3,
            "oslc:nextPage": {
                "rdf:resource": "https://demo.maximo:443/maximo/oslc/os/mxasset?pageno=2&oslc.pageSize=2",
            },
        },
    }


@pytest.fixture
def asset_page_two():
    """Last MXASSET page, lean keys, no next-page link."""
    return {
        "member": [
            {
                "href": "https://demo.maximo:443/maximo/oslc/os/mxasset/_QkVERk9SRC8xMDAz",
                "assetnum": "1003",
                "status": "OPERATING",
            },
        ],
        "responseInfo": {"totalCount": 3},
    }
