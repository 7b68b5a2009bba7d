"""
Smoke Tests: end-to-end run on a synthetic bookings CSV

No external data; the grid is kept to one seasonal transform and one
model so the run stays fast.
"""

import json
import re
import warnings

import pandas as pd
import pytest

from booking_demand.config import PipelineConfig, load_config
from booking_demand.errors import ConfigError, DataError
from booking_demand.tasks import (build_series, regenerate_forecast,
                                  run_full_pipeline, run_grid,
                                  write_reports)
from tests.helpers import FLAT_SPEC, constant_spec


@pytest.fixture
def config(bookings_csv, tmp_path):
    return PipelineConfig(
        data_path=str(bookings_csv),
        artifacts_dir=str(tmp_path / "artifacts"),
        seasonal=("weekly",),
        models=("holt_winter",),
        fit_timeout=None,
    )


@pytest.mark.smoke
class TestPipeline:

    def test_build_series_pads_every_key(self, config):
        store = build_series(config)

        assert [k.unique_id for k in store.keys()] == [
            "City Hotel|Online TA",
            "Resort Hotel|Direct",
        ]
        assert {len(s) for s in store} == {120}
        assert config.series_path().exists()

    def test_series_reused_unless_overwrite(self, config, bookings_csv):
        build_series(config)
        bookings_csv.write_text("not,a,bookings,file\n")

        store = build_series(config)
        assert len(store) == 2

    def test_full_run_writes_artifacts(self, config):
        summary = run_full_pipeline(config)

        assert summary["series"] == 2
        assert summary["jobs"] == 2
        for key in ("leaderboard", "best", "forecasts", "models", "metadata"):
            assert summary[key]

        board = pd.read_parquet(config.leaderboard_path())
        assert len(board) == 2
        assert set(board["rank"]) == {1}

        best = pd.read_parquet(config.best_path())
        assert len(best) == 2
        assert {"actual_min", "actual_mean", "actual_max"} <= set(best.columns)

        metadata = json.loads(config.metadata_path().read_text())
        assert metadata["metric"] == "mae"
        assert metadata["horizon"] == 30

    def test_regenerate_holdout_and_forward(self, config):
        run_full_pipeline(config)

        holdout = regenerate_forecast(config, "City Hotel|Online TA")
        assert len(holdout) == 30
        assert {"y", "yhat"} <= set(holdout.columns)

        forward = regenerate_forecast(config, "City Hotel|Online TA", horizon=14, forward=True)
        assert len(forward) == 14
        assert forward["ds"].iloc[0] == pd.Timestamp("2016-04-30")

        replay = regenerate_forecast(config, "City Hotel|Online TA", horizon=10)
        assert len(replay) == 10
        assert replay["ds"].iloc[0] == holdout["ds"].iloc[0]

    def test_regenerate_unknown_series(self, config):
        run_full_pipeline(config)
        with pytest.raises(KeyError):
            regenerate_forecast(config, "Nowhere|Online TA")

    def test_run_grid_accepts_spec_objects(self, config):
        store = build_series(config)
        results, best = run_grid(store, config, models=[constant_spec("flat", 4.0)])

        assert len(results) == 2
        assert all(cfg.model_name == "flat" for cfg in best.values())

    def test_metadata_records_grid_actually_run(self, config):
        store = build_series(config)
        results, best = run_grid(
            store, config, seasonal=["monthly"], models=[FLAT_SPEC]
        )
        write_reports(results, best, config, run_id="manual")

        metadata = json.loads(config.metadata_path().read_text())
        assert metadata["seasonal"] == ["monthly"]
        assert metadata["models"] == ["flat"]
        assert metadata["run_id"] == "manual"
        assert not list(config.artifacts_path().glob("*.tmp"))


@pytest.mark.fail_loud
class TestPipelineGates:

    def test_unknown_model_fails_before_fitting(self, config):
        bad = PipelineConfig(**{**config.__dict__, "models": ("holt_winter", "tbats")})
        store = build_series(bad)

        with pytest.raises(ConfigError, match="tbats"):
            run_grid(store, bad)

    def test_short_history_fails(self, tmp_path):
        from tests.helpers import make_bookings

        path = tmp_path / "short.csv"
        make_bookings(n_days=20).to_csv(path, index=False)
        cfg = PipelineConfig(data_path=str(path), artifacts_dir=str(tmp_path / "a"))

        with pytest.raises(DataError, match="too short"):
            build_series(cfg)

    def test_tampered_series_file_fails_validation(self, config):
        build_series(config)
        padded = pd.read_parquet(config.series_path())
        resort = padded.index[padded["unique_id"] == "Resort Hotel|Direct"]
        padded.drop(index=resort[:5]).to_parquet(config.series_path(), index=False)

        with pytest.raises(DataError, match="global date range"):
            build_series(config)


class TestConfig:

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("BOOKING_N_JOBS", "4")
        monkeypatch.setenv("BOOKING_FIT_TIMEOUT", "none")

        cfg = load_config(horizon=14)

        assert cfg.n_jobs == 4
        assert cfg.fit_timeout is None
        assert cfg.horizon == 14

    def test_bad_env_value_raises(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("BOOKING_N_JOBS", "many")

        with pytest.raises(ValueError, match="BOOKING_N_JOBS"):
            load_config()

    def test_paths_under_artifacts(self):
        cfg = PipelineConfig(artifacts_dir="out")
        assert str(cfg.leaderboard_path()).startswith("out")
        assert cfg.models_path().suffix == ".joblib"

    def test_run_id_is_utc_timestamp(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            run_id = PipelineConfig().run_id()

        assert re.fullmatch(r"\d{8}_\d{6}", run_id)
