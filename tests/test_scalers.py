import json

import pytest

from beamtwin.exceptions import ConfigError
from beamtwin.model.scalers import ScalerItem, ScalerStore, FEATURE_NAMES


class TestScalerLoad:
    def test_load_mapping(self, scaler_blob):
        data = ScalerStore.load(scaler_blob)
        assert data.load_mag == ScalerItem(mean=90000.0, scale=51961.5)
        assert data.fy.scale == 57.7

    def test_load_json_text(self, scaler_blob):
        data = ScalerStore.load(json.dumps(scaler_blob))
        assert data.to_dict() == ScalerStore.load(scaler_blob).to_dict()

    def test_integers_are_accepted(self, scaler_blob):
        scaler_blob["fc"] = {"mean": 30, "scale": 6}
        data = ScalerStore.load(scaler_blob)
        assert isinstance(data.fc.mean, float)
        assert data.fc.scale == 6.0

    def test_extra_keys_are_ignored(self, scaler_blob):
        scaler_blob["temperature"] = {"mean": 20.0, "scale": 1.0}
        data = ScalerStore.load(scaler_blob)
        assert set(data.to_dict()) == set(FEATURE_NAMES)

    @pytest.mark.parametrize("name", FEATURE_NAMES)
    def test_missing_entry(self, scaler_blob, name):
        del scaler_blob[name]
        with pytest.raises(ConfigError, match=name):
            ScalerStore.load(scaler_blob)

    def test_missing_field(self, scaler_blob):
        del scaler_blob["y"]["scale"]
        with pytest.raises(ConfigError, match="scale"):
            ScalerStore.load(scaler_blob)

    def test_zero_scale(self, scaler_blob):
        scaler_blob["global_deflection"]["scale"] = 0.0
        with pytest.raises(ConfigError, match="zero"):
            ScalerStore.load(scaler_blob)

    @pytest.mark.parametrize("bad", ["1.0", None, True, [1.0], float("nan")])
    def test_non_numeric_value(self, scaler_blob, bad):
        scaler_blob["x"]["mean"] = bad
        with pytest.raises(ConfigError):
            ScalerStore.load(scaler_blob)

    def test_entry_not_an_object(self, scaler_blob):
        scaler_blob["fy"] = 400.0
        with pytest.raises(ConfigError):
            ScalerStore.load(scaler_blob)

    def test_blob_not_an_object(self):
        with pytest.raises(ConfigError):
            ScalerStore.load("[1, 2, 3]")

    def test_invalid_json(self):
        with pytest.raises(ConfigError, match="JSON"):
            ScalerStore.load("{not json")

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            ScalerStore.load({})

    def test_direct_zero_scale_item(self):
        with pytest.raises(ConfigError):
            ScalerItem(mean=1.0, scale=0.0)


class TestScalerFile:
    def test_from_file(self, tmp_path, scaler_blob):
        path = tmp_path / "scalers.json"
        path.write_text(json.dumps(scaler_blob), encoding="utf-8")
        data = ScalerStore.from_file(str(path))
        assert data.x.scale == 303.1

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            ScalerStore.from_file(str(tmp_path / "nope.json"))


class TestScalerStoreAccessors:
    def test_accessors(self, scalers):
        store = ScalerStore(scalers)
        assert store.data is scalers
        assert store.x is scalers.x
        assert store.y is scalers.y
        assert store.load_mag is scalers.load_mag
        assert store.global_deflection is scalers.global_deflection
        assert store.fc is scalers.fc
        assert store.fy is scalers.fy

    def test_data_is_immutable(self, scalers):
        with pytest.raises(AttributeError):
            scalers.fy = ScalerItem(mean=0.0, scale=1.0)
