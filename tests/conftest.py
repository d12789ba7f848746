"""
Pytest configuration and fixtures
"""

from pathlib import Path
from typing import Callable, Dict, Any

import pytest
import yaml

from opentmf_utils.config import get_settings
from opentmf_utils.opentmf.mock import MockContext, MockRegistry


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test with default settings"""
    for name in [
        "OPENTMF_BACKEND",
        "OPENTMF_LIBRARY_PATH",
        "OPENTMF_MOCK_REGISTRY",
        "OPENTMF_LOG_LEVEL",
        "OPENTMF_LOG_FORMAT",
        "OPENTMF_LOG_FILE",
    ]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_registry() -> Dict[str, Any]:
    """Three drivers, two devices on the first one"""
    return {
        "drivers": [
            {
                "id": "usbtmc",
                "info": {
                    "name": "usbtmc",
                    "version": {"major": 1, "minor": 2, "patch": 3, "extra": "-beta"},
                    "description": "USB Test & Measurement Class\nDriver for USBTMC instruments",
                    "authors": "Reinder Feenstra",
                    "license": "GPL-2.0+",
                    "non_free": False,
                },
                "devices": [
                    {"path": "/0957:1796/MY52012345", "name": "DSO-X 2024A", "serial": "MY52012345"},
                    {"path": "/1ab1:04ce/DS1ZA1234", "name": "DS1054Z", "serial": "DS1ZA1234"},
                ],
            },
            {
                "id": "vxi11",
                "info": {
                    "name": "vxi11",
                    "version": {"major": 0, "minor": 9},
                    "description": "VXI-11 over TCP/IP",
                    "authors": "Alice\nBob\n",
                    "license": "MIT",
                },
            },
            {
                "id": "gpib",
                "info": {
                    "name": "gpib",
                    "version": {"major": 2, "minor": 0, "patch": 0, "extra": ""},
                    "description": "",
                    "authors": "",
                    "license": "Proprietary",
                    "non_free": True,
                },
            },
        ]
    }


@pytest.fixture
def make_context(sample_registry) -> Callable[..., MockContext]:
    """Build an initialized MockContext, optionally from a modified registry"""
    def factory(registry: Dict[str, Any] = None) -> MockContext:
        ctx = MockContext(MockRegistry.model_validate(registry or sample_registry))
        ctx.init()
        return ctx
    return factory


@pytest.fixture
def write_registry(tmp_path) -> Callable[[Dict[str, Any]], Path]:
    """Write a registry description to a YAML file"""
    def writer(registry: Dict[str, Any]) -> Path:
        path = tmp_path / "registry.yaml"
        path.write_text(yaml.safe_dump(registry), encoding="utf-8")
        return path
    return writer


@pytest.fixture
def mock_backend(monkeypatch, write_registry, sample_registry) -> Callable[..., Path]:
    """Point the CLI at the mock backend"""
    def use(registry: Dict[str, Any] = None) -> Path:
        path = write_registry(registry or sample_registry)
        monkeypatch.setenv("OPENTMF_BACKEND", "mock")
        monkeypatch.setenv("OPENTMF_MOCK_REGISTRY", str(path))
        get_settings.cache_clear()
        return path
    return use
