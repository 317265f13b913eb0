"""
===============================================================================
NATIVEBENCH - Configuration Test Suite
===============================================================================
YAML loading, defaults, validation errors and per-algorithm overrides.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import textwrap

import pytest

from nativebench.algorithms import ALGORITHMS
from nativebench.config import SuiteConfig, load_config, parse_config
from nativebench.core.errors import InputError


def write_config(tmp_path, body):
    path = tmp_path / "bench.yaml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


class TestDefaults:

    def test_empty_mapping(self):
        config = parse_config({})
        assert config == SuiteConfig()
        assert config.mode == "light"
        assert not config.heavy
        assert config.heavy_iterations == 10
        assert config.database.enabled
        assert config.memory.enabled

    def test_empty_file(self, tmp_path):
        assert load_config(write_config(tmp_path, "")) == SuiteConfig()

    def test_bundled_config_loads(self):
        assert isinstance(load_config(), SuiteConfig)

    def test_all_definitions_in_registry_order(self):
        assert [d.key for d in SuiteConfig().definitions()] == list(ALGORITHMS)


class TestLoading:

    def test_full_file(self, tmp_path):
        path = write_config(tmp_path, """
            mode: heavy
            heavy_iterations: 4
            output:
              results_dir: out
              save_json: false
            database:
              enabled: false
              path: out/b.db
            memory:
              enabled: false
            logging:
              level: debug
              file: out/run.log
            algorithms:
              fft:
                iterations: 2
                sizes: {tiny: 64}
        """)
        config = load_config(path)

        assert config.heavy
        assert config.heavy_iterations == 4
        assert config.output.results_dir == "out"
        assert not config.output.save_json
        assert not config.database.enabled
        assert config.database.path == "out/b.db"
        assert not config.memory.enabled
        assert config.logging.level == "DEBUG"
        assert config.logging.file == "out/run.log"

        (fft,) = config.definitions(["fft"])
        assert fft.iterations == 2
        assert fft.sizes == {"tiny": 64}
        assert fft.heavy_sizes == ALGORITHMS["fft"].heavy_sizes

    def test_overrides_do_not_touch_registry(self, tmp_path):
        config = load_config(write_config(tmp_path, """
            algorithms:
              matrix: {iterations: 7}
        """))
        assert config.definitions(["matrix"])[0].iterations == 7
        assert ALGORITHMS["matrix"].iterations == 1


class TestErrors:

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(InputError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(InputError):
            load_config(write_config(tmp_path, "mode: [light\n"))

    @pytest.mark.parametrize("raw", [
        {"mode": "turbo"},
        {"heavy_iterations": 0},
        {"heavy_iterations": "ten"},
        {"algorithms": {"bogus": {}}},
        {"algorithms": {"fft": {"iterations": -1}}},
        {"algorithms": {"fft": {"sizes": {}}}},
        {"algorithms": {"matrix": 5}},
        {"algorithms": {"fft": ["sizes"]}},
        {"output": ["not", "a", "mapping"]},
    ])
    def test_invalid_values(self, raw):
        with pytest.raises(InputError):
            parse_config(raw)

    def test_unknown_definition_key(self):
        with pytest.raises(InputError):
            SuiteConfig().definitions(["fft", "nope"])
