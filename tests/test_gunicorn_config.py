"""Tests for gunicorn configuration."""
from __future__ import annotations

import importlib.util
import os
from pathlib import Path
from unittest.mock import patch

CONFIG_PATH = Path(__file__).resolve().parent.parent / "gunicorn.conf.py"


def _load():
    spec = importlib.util.spec_from_file_location("gunicorn_conf", CONFIG_PATH)
    assert spec is not None
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # type: ignore[union-attr]
    return mod


class TestGunicornConfig:
    def test_config_loads(self) -> None:
        mod = _load()
        assert hasattr(mod, "bind")
        assert hasattr(mod, "workers")
        assert hasattr(mod, "worker_class")
        assert hasattr(mod, "timeout")
        assert hasattr(mod, "max_requests")

    def test_default_bind(self) -> None:
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("GUNICORN_BIND", None)
            assert "5220" in _load().bind

    def test_worker_class_is_uvicorn(self) -> None:
        assert "uvicorn" in _load().worker_class

    def test_env_override(self) -> None:
        with patch.dict(os.environ, {"GUNICORN_WORKERS": "3", "GUNICORN_TIMEOUT": "60"}):
            mod = _load()
        assert mod.workers == 3
        assert mod.timeout == 60
