from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from audio_studio.config import load_effects_config, merge_overrides
from audio_studio.errors import ConfigError
from audio_studio.types import EffectsConfig


def test_defaults_leave_every_optional_stage_off():
    cfg = EffectsConfig()
    assert cfg.volume == 1.0
    assert cfg.tempo == 1.0
    assert not cfg.has_eq
    assert not cfg.limiter_active
    assert not cfg.attenuator_active
    assert cfg.processing_enabled


def test_processing_gate_only_closes_on_explicit_false():
    assert EffectsConfig(limiter=True).limiter_active
    assert EffectsConfig(limiter=True, audio_processing_enabled=True).limiter_active
    assert not EffectsConfig(limiter=True, audio_processing_enabled=False).limiter_active
    assert not EffectsConfig(attenuator=True, audio_processing_enabled=False).attenuator_active


def test_eq_bands_fill_unset_with_unity():
    bands = EffectsConfig(eq_mid=0.8).eq_bands()
    assert bands == [(60.0, 0.5), (250.0, 0.5), (1000.0, 0.8), (4000.0, 0.5), (16000.0, 0.5)]


def test_from_config_accepts_camel_case_and_skips_front_end_only_keys():
    cfg = EffectsConfig.from_config(
        {
            "bassBoost": 0.4,
            "eqLowMid": 0.6,
            "limiterThreshold": -3,
            "audioProcessingEnabled": False,
            "nightcore": 0.5,
            "vocalExtractor": True,
            "reverb": None,
        }
    )
    assert cfg.bass_boost == pytest.approx(0.4)
    assert cfg.eq_low_mid == pytest.approx(0.6)
    assert cfg.limiter_threshold == pytest.approx(-3.0)
    assert cfg.audio_processing_enabled is False
    assert cfg.reverb == 0.0


def test_from_config_warns_on_unknown_keys(caplog):
    with caplog.at_level(logging.WARNING, logger="audio_studio.types"):
        cfg = EffectsConfig.from_config({"volume": 0.3, "wobble": 2})
    assert cfg.volume == pytest.approx(0.3)
    assert "wobble" in caplog.text


def test_from_config_rejects_non_numbers():
    with pytest.raises(ValueError):
        EffectsConfig.from_config({"tempo": "fast"})
    with pytest.raises(ValueError):
        EffectsConfig.from_config({"volume": True})
    with pytest.raises(ValueError):
        EffectsConfig.from_config({"reverb_method": "overlap-add"})


@pytest.mark.parametrize("key, value", [("reverb_seed", [1, 2]), ("reverb_seed", "abc"), ("volume", {"x": 1})])
def test_from_config_rejects_non_scalar_values(key, value):
    with pytest.raises(ValueError):
        EffectsConfig.from_config({key: value})


def test_load_effects_config_wraps_non_scalar_values(tmp_path: Path):
    path = tmp_path / "fx.json"
    path.write_text(json.dumps({"reverb_seed": [1, 2]}), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_effects_config(path)


def test_config_is_read_only():
    cfg = EffectsConfig()
    with pytest.raises(AttributeError):
        cfg.volume = 2.0  # type: ignore[misc]


def test_load_effects_config_from_json(tmp_path: Path):
    path = tmp_path / "fx.json"
    path.write_text(json.dumps({"effects": {"tempo": 1.25, "limiter": True, "reverb_seed": 3}}), encoding="utf-8")
    cfg = load_effects_config(path)
    assert cfg.tempo == pytest.approx(1.25)
    assert cfg.limiter is True
    assert cfg.reverb_seed == 3


def test_load_effects_config_without_path_gives_defaults():
    assert load_effects_config(None) == EffectsConfig()


def test_load_effects_config_errors(tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_effects_config(bad)

    listy = tmp_path / "list.json"
    listy.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_effects_config(listy)

    with pytest.raises(ConfigError):
        load_effects_config(tmp_path / "missing.json")


def test_merge_overrides_applies_given_values_only():
    base = EffectsConfig(volume=0.5, tempo=1.5)
    merged = merge_overrides(base, volume=None, tempo=0.9, attenuator=True)
    assert merged.volume == pytest.approx(0.5)
    assert merged.tempo == pytest.approx(0.9)
    assert merged.attenuator is True
    with pytest.raises(ConfigError):
        merge_overrides(base, wobble=1.0)
