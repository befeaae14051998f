"""
Configuration store for expression -> command trigger mappings.

The store holds an ordered mapping of expression key to TriggerConfig,
seeded from the built-in defaults or from persisted state, and saves the
whole mapping synchronously after every mutation.
"""

import logging
import math
import time
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from expression_triggers.storage import MemoryStorage, StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_HOLD_TIME = 2.0


def normalize_hold_time(value: Any) -> float:
    """
    Coerce a hold time to a positive finite float.

    Absent, non-numeric, non-positive or non-finite values fall back to
    DEFAULT_HOLD_TIME.
    """
    if isinstance(value, bool):
        return DEFAULT_HOLD_TIME
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return DEFAULT_HOLD_TIME
    if not math.isfinite(seconds) or seconds <= 0:
        return DEFAULT_HOLD_TIME
    return seconds


@dataclass(frozen=True)
class TriggerConfig:
    """Trigger settings for one expression key.

    Attributes:
        display_name: Label shown to the user; not unique across keys
        command: Opaque command string sent to the assistant
        enabled: Whether the expression may trigger at all
        hold_time_seconds: How long the expression must be held, always > 0
    """

    display_name: str
    command: str = ""
    enabled: bool = True
    hold_time_seconds: float = DEFAULT_HOLD_TIME

    def __post_init__(self):
        object.__setattr__(
            self, 'hold_time_seconds', normalize_hold_time(self.hold_time_seconds)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'display_name': self.display_name,
            'command': self.command,
            'enabled': self.enabled,
            'hold_time_seconds': self.hold_time_seconds,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], fallback_name: str = "") -> 'TriggerConfig':
        """
        Build a config from a persisted record.

        Also reads the ``name`` / ``holdTime`` field names used by older
        browser-side exports.
        """
        enabled = data.get('enabled', True)
        return cls(
            display_name=str(data.get('display_name', data.get('name', fallback_name))),
            command=str(data.get('command', "")),
            enabled=enabled if isinstance(enabled, bool) else True,
            hold_time_seconds=data.get('hold_time_seconds', data.get('holdTime')),
        )


# Built-in defaults, in display order
DEFAULT_TRIGGERS: Dict[str, TriggerConfig] = {
    "happy": TriggerConfig("😊 Smile", "Alexa, play music", True, 2.0),
    "surprised": TriggerConfig("😮 Surprise", "Alexa, pause", True, 2.0),
    "angry": TriggerConfig("😤 Anger", "Alexa, stop music", True, 2.0),
    "sad": TriggerConfig("😢 Sadness", "Alexa, dim the lights", True, 2.0),
    "neutral": TriggerConfig("😐 Neutral", "Alexa, turn on the lights", True, 2.0),
    "leftEyeWink": TriggerConfig("😉 Left Eye Wink", "Alexa, next song", False, 1.0),
    "rightEyeWink": TriggerConfig("😜 Right Eye Wink", "Alexa, previous song", False, 1.0),
    "leftSmile": TriggerConfig("🙂 Left Half Smile", "Alexa, volume up", False, 1.5),
    "rightSmile": TriggerConfig("🙃 Right Half Smile", "Alexa, volume down", False, 1.5),
    "frownBrow": TriggerConfig("😟 Brow Frown", "Alexa, what time is it", False, 2.5),
    "mouthOpen": TriggerConfig("😲 Mouth Open", "Alexa, what's the weather today", False, 1.5),
}

_FIELD_NAMES = {f.name for f in fields(TriggerConfig)}


class ConfigurationStore:
    """
    Mutable, persisted mapping of expression key -> TriggerConfig.

    Usage:
        store = ConfigurationStore(JsonFileStorage("triggers.json"))
        store.upsert("happy", {"command": "Alexa, lights off"})
        key = store.add_custom("🤨 Raised Brow", "Alexa, stop")
    """

    CUSTOM_PREFIX = "custom_"

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Create a store and load its contents.

        Args:
            storage: Persistence backend. Defaults to a private MemoryStorage.
            clock: Wall clock in seconds, used to derive custom keys.
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self._clock = clock
        self._configs: Dict[str, TriggerConfig] = {}
        self.load()

    def load(self) -> None:
        """Replace the in-memory mapping with persisted state, or defaults."""
        data = self.storage.load()
        configs = self._parse(data) if data is not None else None
        if configs is None:
            self._configs = dict(DEFAULT_TRIGGERS)
            logger.info("No saved trigger configuration, using defaults")
        else:
            self._configs = configs
            logger.info(f"Loaded {len(configs)} trigger configurations")

    @staticmethod
    def _parse(data: Any) -> Optional[Dict[str, TriggerConfig]]:
        if not isinstance(data, Mapping):
            logger.warning("Saved trigger configuration is not a mapping, using defaults")
            return None
        configs = {}
        for key, record in data.items():
            if not isinstance(record, Mapping):
                logger.warning(f"Skipping malformed trigger configuration for {key!r}")
                continue
            configs[str(key)] = TriggerConfig.from_dict(record, fallback_name=str(key))
        return configs

    def save(self) -> None:
        """Persist the full mapping."""
        self.storage.save({key: config.to_dict() for key, config in self._configs.items()})

    def get(self, key: str) -> Optional[TriggerConfig]:
        return self._configs.get(key)

    def list(self) -> List[Tuple[str, TriggerConfig]]:
        """All entries in insertion order."""
        return list(self._configs.items())

    def active(self) -> List[Tuple[str, TriggerConfig]]:
        """Enabled entries in insertion order."""
        return [(key, config) for key, config in self._configs.items() if config.enabled]

    def __contains__(self, key: str) -> bool:
        return key in self._configs

    def __len__(self) -> int:
        return len(self._configs)

    @staticmethod
    def is_default(key: str) -> bool:
        """Whether ``key`` is one of the built-in expression identities."""
        return key in DEFAULT_TRIGGERS

    def display_name(self, key: str) -> str:
        """Configured name, else the built-in name, else the neutral name."""
        config = self._configs.get(key) or DEFAULT_TRIGGERS.get(key)
        if config is not None:
            return config.display_name
        return DEFAULT_TRIGGERS["neutral"].display_name

    def find_by_display_name(self, display_name: str) -> Optional[Tuple[str, TriggerConfig]]:
        """First entry in store order carrying ``display_name``."""
        for key, config in self._configs.items():
            if config.display_name == display_name:
                return key, config
        return None

    def upsert(self, key: str, updates: Optional[Mapping[str, Any]] = None) -> TriggerConfig:
        """
        Create or update the config for ``key`` and persist.

        Unknown keys start from the built-in template when one exists,
        otherwise from a bare config named after the key.

        Args:
            key: Expression key
            updates: Partial TriggerConfig fields to merge

        Returns:
            The stored config

        Raises:
            ValueError: If ``updates`` names a field TriggerConfig does not have
        """
        updates = dict(updates or {})
        unknown = set(updates) - _FIELD_NAMES
        if unknown:
            raise ValueError(f"Unknown trigger config fields: {sorted(unknown)}")

        current = self._configs.get(key)
        if current is None:
            current = DEFAULT_TRIGGERS.get(key) or TriggerConfig(display_name=key)
        config = replace(current, **updates)

        self._configs[key] = config
        self.save()
        return config

    def remove(self, key: str) -> bool:
        """Remove any key, built-in ones included. Returns False if absent."""
        if key not in self._configs:
            return False
        del self._configs[key]
        self.save()
        return True

    def _new_custom_key(self) -> str:
        millis = int(self._clock() * 1000)
        key = f"{self.CUSTOM_PREFIX}{millis}"
        while key in self._configs:
            millis += 1
            key = f"{self.CUSTOM_PREFIX}{millis}"
        return key

    def add_custom(
        self,
        display_name: str,
        command: str,
        hold_time_seconds: float = DEFAULT_HOLD_TIME,
    ) -> str:
        """
        Add an enabled custom expression under a fresh time-derived key.

        Returns:
            The new key

        Raises:
            ValueError: If display_name is empty
        """
        if not display_name or not display_name.strip():
            raise ValueError("display_name must not be empty")
        key = self._new_custom_key()
        self._configs[key] = TriggerConfig(
            display_name=display_name.strip(),
            command=command,
            enabled=True,
            hold_time_seconds=hold_time_seconds,
        )
        self.save()
        logger.info(f"Added custom expression {key} ({display_name})")
        return key

    def rename(self, old_key: str, new_key: str) -> bool:
        """
        Move the command, hold time and enabled flag of ``old_key`` onto
        ``new_key`` and drop ``old_key``.

        The target keeps its own display name if it already exists, or takes
        the built-in one. Returns False if ``old_key`` is unknown or equal to
        ``new_key``.
        """
        old = self._configs.get(old_key)
        if old is None or old_key == new_key:
            return False
        self.upsert(new_key, {
            'command': old.command,
            'hold_time_seconds': old.hold_time_seconds,
            'enabled': old.enabled,
        })
        self.remove(old_key)
        logger.info(f"Moved trigger from {old_key} to {new_key}")
        return True

    def reset_to_defaults(self) -> None:
        """Drop every entry and re-seed from the built-in set."""
        self._configs = dict(DEFAULT_TRIGGERS)
        self.save()
        logger.info("Trigger configuration reset to defaults")
