"""
Property-based tests for ConfigurationStore and its storage backends.

These tests verify defaulting rules, persistence round-trips and the
edit operations using Hypothesis for property-based testing.
"""

import json
import math

import pytest
from hypothesis import given, settings
import hypothesis.strategies as st

from expression_triggers.storage import STORAGE_KEY, JsonFileStorage, MemoryStorage
from expression_triggers.store import (
    DEFAULT_HOLD_TIME,
    DEFAULT_TRIGGERS,
    ConfigurationStore,
    TriggerConfig,
    normalize_hold_time,
)


def trigger_config_strategy():
    """Generate valid TriggerConfig objects."""
    return st.builds(
        TriggerConfig,
        display_name=st.text(min_size=1, max_size=20),
        command=st.text(max_size=40),
        enabled=st.booleans(),
        hold_time_seconds=st.floats(min_value=0.1, max_value=30.0,
                                    allow_nan=False, allow_infinity=False),
    )


def config_updates_strategy():
    return st.fixed_dictionaries({}, optional={
        'display_name': st.text(min_size=1, max_size=20),
        'command': st.text(max_size=40),
        'enabled': st.booleans(),
        'hold_time_seconds': st.floats(min_value=0.1, max_value=30.0, allow_nan=False),
    })


class FakeClock:
    """Wall clock frozen at a fixed instant."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestHoldTimeDefaulting:
    """
    **Feature: expression-triggers, Property 7: Positive Hold Time**

    *For any* value, the normalised hold time is positive and finite, and
    valid positive values pass through unchanged.
    """

    @settings(max_examples=100)
    @given(value=st.one_of(
        st.none(),
        st.booleans(),
        st.text(max_size=5),
        st.floats(allow_nan=True, allow_infinity=True),
        st.integers(min_value=-100, max_value=100),
    ))
    def test_always_positive_and_finite(self, value):
        seconds = normalize_hold_time(value)
        assert seconds > 0
        assert math.isfinite(seconds)

    @settings(max_examples=100)
    @given(value=st.floats(min_value=1e-3, max_value=1e6, allow_nan=False))
    def test_valid_values_pass_through(self, value):
        assert normalize_hold_time(value) == value

    @pytest.mark.parametrize("value", [None, 0, -1.5, "abc", float('nan'), float('inf'), True])
    def test_invalid_values_default(self, value):
        assert TriggerConfig("x", hold_time_seconds=value).hold_time_seconds == DEFAULT_HOLD_TIME

    def test_numeric_strings_are_accepted(self):
        assert normalize_hold_time("1.5") == 1.5


class TestPersistenceRoundTrip:
    """
    **Feature: expression-triggers, Property 8: Persistence Round-Trip**

    *For any* sequence of upserts, a second store loading the same storage
    reconstructs an equivalent mapping.
    """

    @settings(max_examples=100)
    @given(edits=st.lists(
        st.tuples(st.sampled_from(list(DEFAULT_TRIGGERS) + ["wave", "nod"]),
                  config_updates_strategy()),
        max_size=10,
    ))
    def test_upsert_then_reload(self, edits):
        storage = MemoryStorage()
        store = ConfigurationStore(storage)
        for key, updates in edits:
            store.upsert(key, updates)

        reloaded = ConfigurationStore(storage)

        assert dict(reloaded.list()) == dict(store.list())

    @settings(max_examples=50)
    @given(config=trigger_config_strategy())
    def test_config_dict_round_trip(self, config):
        assert TriggerConfig.from_dict(config.to_dict()) == config

    def test_json_file_round_trip(self, tmp_path):
        path = tmp_path / "triggers.json"
        store = ConfigurationStore(JsonFileStorage(path))
        store.upsert("happy", {"command": "Alexa, lights off", "hold_time_seconds": 1.25})
        key = store.add_custom("🤨 Raised Brow", "Alexa, stop", 3.0)

        reloaded = ConfigurationStore(JsonFileStorage(path))

        assert dict(reloaded.list()) == dict(store.list())
        assert reloaded.get(key).display_name == "🤨 Raised Brow"
        document = json.loads(path.read_text(encoding="utf-8"))
        assert list(document) == [STORAGE_KEY]

    def test_json_file_keeps_other_keys(self, tmp_path):
        path = tmp_path / "triggers.json"
        path.write_text(json.dumps({"other": 1}), encoding="utf-8")

        ConfigurationStore(JsonFileStorage(path)).upsert("happy", {"enabled": False})

        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["other"] == 1
        assert document[STORAGE_KEY]["happy"]["enabled"] is False


class TestLoading:

    def test_empty_storage_seeds_defaults(self):
        store = ConfigurationStore(MemoryStorage())
        assert store.list() == list(DEFAULT_TRIGGERS.items())

    def test_persisted_mapping_replaces_defaults(self):
        storage = MemoryStorage()
        storage.save({"wave": {"display_name": "👋 Wave", "command": "hi"}})

        store = ConfigurationStore(storage)

        assert [key for key, _ in store.list()] == ["wave"]
        assert store.get("wave") == TriggerConfig("👋 Wave", "hi", True, DEFAULT_HOLD_TIME)

    def test_legacy_field_names(self):
        storage = MemoryStorage()
        storage.save({"happy": {"name": "Smile", "command": "c", "enabled": False, "holdTime": 1}})

        config = ConfigurationStore(storage).get("happy")

        assert config == TriggerConfig("Smile", "c", False, 1.0)

    @pytest.mark.parametrize("raw", ["false", 0, None, "no"])
    def test_non_bool_enabled_keeps_default(self, raw):
        storage = MemoryStorage()
        storage.save({"happy": {"display_name": "Smile", "enabled": raw}})
        assert ConfigurationStore(storage).get("happy").enabled is True

    def test_bool_enabled_is_kept(self):
        assert TriggerConfig.from_dict({"enabled": False}, "x").enabled is False

    def test_corrupt_mapping_seeds_defaults(self):
        storage = MemoryStorage()
        storage.save(["not", "a", "mapping"])
        assert len(ConfigurationStore(storage)) == len(DEFAULT_TRIGGERS)

    def test_malformed_entry_is_skipped(self):
        storage = MemoryStorage()
        storage.save({"happy": "oops", "sad": {"command": "c"}})

        store = ConfigurationStore(storage)

        assert "happy" not in store
        assert store.get("sad").display_name == "sad"

    def test_unreadable_file_seeds_defaults(self, tmp_path):
        path = tmp_path / "triggers.json"
        path.write_text("{not json", encoding="utf-8")
        assert len(ConfigurationStore(JsonFileStorage(path))) == len(DEFAULT_TRIGGERS)


class TestUpsert:

    def test_updates_existing(self):
        store = ConfigurationStore()
        config = store.upsert("happy", {"command": "new"})
        assert config.command == "new"
        assert config.display_name == DEFAULT_TRIGGERS["happy"].display_name

    def test_missing_default_is_recreated_from_template(self):
        store = ConfigurationStore()
        store.remove("frownBrow")

        config = store.upsert("frownBrow", {"enabled": True})

        assert config == TriggerConfig("😟 Brow Frown", "Alexa, what time is it", True, 2.5)

    def test_unknown_key_gets_bare_config(self):
        store = ConfigurationStore()
        config = store.upsert("wave", {})
        assert config == TriggerConfig("wave", "", True, DEFAULT_HOLD_TIME)

    def test_invalid_hold_time_defaults(self):
        store = ConfigurationStore()
        assert store.upsert("happy", {"hold_time_seconds": -3}).hold_time_seconds == 2.0

    def test_unknown_field_rejected(self):
        store = ConfigurationStore()
        with pytest.raises(ValueError):
            store.upsert("happy", {"volume": 11})

    def test_every_mutation_persists(self):
        storage = MemoryStorage()
        store = ConfigurationStore(storage)
        assert storage.load() is None

        store.upsert("happy", {"command": "x"})
        assert storage.load()["happy"]["command"] == "x"

        store.remove("happy")
        assert "happy" not in storage.load()


class TestEditOperations:

    def test_remove_defaults_allowed(self):
        store = ConfigurationStore()
        assert store.remove("neutral") is True
        assert store.get("neutral") is None
        assert store.remove("neutral") is False

    def test_add_custom_twice_gives_distinct_keys(self):
        store = ConfigurationStore(clock=FakeClock())
        first = store.add_custom("A", "a")
        second = store.add_custom("B", "b")

        assert first != second
        assert first.startswith("custom_") and second.startswith("custom_")
        assert store.get(first).command == "a"
        assert store.get(second).command == "b"

    def test_add_custom_with_real_clock(self):
        store = ConfigurationStore()
        keys = {store.add_custom(f"E{i}", "c") for i in range(20)}
        assert len(keys) == 20

    def test_add_custom_is_enabled(self):
        store = ConfigurationStore()
        key = store.add_custom("  Nod  ", "Alexa, yes", 0)
        assert store.get(key) == TriggerConfig("Nod", "Alexa, yes", True, DEFAULT_HOLD_TIME)

    def test_add_custom_requires_name(self):
        with pytest.raises(ValueError):
            ConfigurationStore().add_custom("   ", "c")

    def test_rename_moves_trigger(self):
        store = ConfigurationStore()
        store.upsert("happy", {"command": "party", "hold_time_seconds": 1.0})

        assert store.rename("happy", "surprised")

        assert store.get("happy") is None
        moved = store.get("surprised")
        assert moved.command == "party"
        assert moved.hold_time_seconds == 1.0
        assert moved.display_name == DEFAULT_TRIGGERS["surprised"].display_name

    def test_rename_unknown_or_same_key(self):
        store = ConfigurationStore()
        assert store.rename("nope", "happy") is False
        assert store.rename("happy", "happy") is False

    def test_reset_to_defaults(self):
        storage = MemoryStorage()
        store = ConfigurationStore(storage)
        store.add_custom("A", "a")
        store.remove("happy")

        store.reset_to_defaults()

        assert store.list() == list(DEFAULT_TRIGGERS.items())
        assert ConfigurationStore(storage).list() == list(DEFAULT_TRIGGERS.items())

    def test_active_lists_enabled_only(self):
        store = ConfigurationStore()
        keys = [key for key, _ in store.active()]
        assert keys == ["happy", "surprised", "angry", "sad", "neutral"]

    def test_display_name_fallbacks(self):
        store = ConfigurationStore()
        store.upsert("happy", {"display_name": "Grin"})
        store.remove("sad")

        assert store.display_name("happy") == "Grin"
        assert store.display_name("sad") == "😢 Sadness"
        assert store.display_name("fearful") == "😐 Neutral"

    def test_duplicate_display_names_allowed(self):
        store = ConfigurationStore()
        store.upsert("sad", {"display_name": "😊 Smile"})
        assert store.find_by_display_name("😊 Smile")[0] == "happy"
