"""Configuration system for OverlayTreeLib.

This module defines how users specify what an observer is interested in
(ObserverOptions) and how a tree context is tuned (ContextConfig).
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ConfigurationError


# Public (camelCase) option names mapped to their Python field names.
OPTION_ALIASES: Dict[str, str] = {
    'childList': 'child_list',
    'attributes': 'attributes',
    'characterData': 'character_data',
    'subtree': 'subtree',
    'attributeOldValue': 'attribute_old_value',
    'characterDataOldValue': 'character_data_old_value',
    'attributeFilter': 'attribute_filter',
}

_OPTION_FIELDS = frozenset(OPTION_ALIASES.values())


@dataclass(frozen=True)
class ObserverOptions:
    """What a single registration wants to hear about.

    Instances are immutable and always valid; build them with
    ``from_mapping`` so the implicit-enable rules and validation apply.
    """

    child_list: bool = False                  # Structural changes
    attributes: bool = False                  # Attribute changes
    character_data: bool = False              # Text changes
    subtree: bool = False                     # Also watch descendants
    attribute_old_value: bool = False         # Capture prior attribute value
    character_data_old_value: bool = False    # Capture prior text value
    attribute_filter: Optional[Tuple[str, ...]] = None  # Attribute allow-list

    @classmethod
    def from_mapping(cls, config: Optional[Mapping[str, Any]] = None, **options: Any) -> 'ObserverOptions':
        """Build validated options from a configuration mapping.

        Keys may use either the public camelCase names (``childList``,
        ``attributeFilter``...) or the snake_case field names. Keyword
        arguments override mapping entries.

        Rules:
        - ``attributes`` is switched on when ``attributeOldValue`` or
          ``attributeFilter`` is present and ``attributes`` was omitted;
          asking for either while ``attributes`` is explicitly false is
          an error.
        - ``characterData`` is switched on when ``characterDataOldValue``
          is present and ``characterData`` was omitted; asking for the old
          value while ``characterData`` is explicitly false is an error.
        - ``attributeFilter`` must be a list, tuple or set of strings.
          ``None`` counts as absent.

        Args:
            config: Mapping of option names to values
            **options: Additional options (snake_case or camelCase)

        Returns:
            Validated ObserverOptions

        Raises:
            ConfigurationError: If the options are inconsistent
        """
        raw = normalize_option_keys(dict(config or {}), **options)
        errors = validate_raw_options(raw)
        if errors:
            raise ConfigurationError(f"Invalid observer options: {'; '.join(errors)}")

        attribute_filter = raw.get('attribute_filter')
        has_filter = attribute_filter is not None

        if 'attributes' in raw:
            attributes = bool(raw['attributes'])
        else:
            attributes = 'attribute_old_value' in raw or has_filter

        if 'character_data' in raw:
            character_data = bool(raw['character_data'])
        else:
            character_data = 'character_data_old_value' in raw

        return cls(
            child_list=bool(raw.get('child_list', False)),
            attributes=attributes,
            character_data=character_data,
            subtree=bool(raw.get('subtree', False)),
            attribute_old_value=bool(raw.get('attribute_old_value', False)),
            character_data_old_value=bool(raw.get('character_data_old_value', False)),
            attribute_filter=tuple(attribute_filter) if has_filter else None,
        )

    def to_mapping(self) -> Dict[str, Any]:
        """Return the options using the public camelCase names."""
        result = {
            public: getattr(self, field_name)
            for public, field_name in OPTION_ALIASES.items()
        }
        if self.attribute_filter is None:
            del result['attributeFilter']
        else:
            result['attributeFilter'] = list(self.attribute_filter)
        return result


def normalize_option_keys(config: Dict[str, Any], **options: Any) -> Dict[str, Any]:
    """Merge and translate option keys to snake_case field names.

    ``None`` values for ``attribute_filter`` are dropped so that they count
    as absent.

    Raises:
        ConfigurationError: If an unknown option name is used
    """
    merged = dict(config)
    merged.update(options)

    raw: Dict[str, Any] = {}
    unknown = []
    for key, value in merged.items():
        field_name = OPTION_ALIASES.get(key, key)
        if field_name not in _OPTION_FIELDS:
            unknown.append(key)
            continue
        raw[field_name] = value

    if unknown:
        raise ConfigurationError(f"Unknown observer option(s): {', '.join(sorted(unknown))}")

    if raw.get('attribute_filter', 0) is None:
        del raw['attribute_filter']
    return raw


def validate_raw_options(raw: Dict[str, Any]) -> List[str]:
    """Validate normalized options before defaults are applied.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    attribute_filter = raw.get('attribute_filter')
    if attribute_filter is not None:
        if isinstance(attribute_filter, (str, bytes)) or not isinstance(attribute_filter, (list, tuple, set, frozenset)):
            errors.append("attributeFilter must be a list of attribute names")
        elif not all(isinstance(name, str) for name in attribute_filter):
            errors.append("attributeFilter entries must be strings")

    attributes_off = 'attributes' in raw and not raw['attributes']
    if attributes_off and raw.get('attribute_old_value'):
        errors.append("attributeOldValue requires attributes to be true")
    if attributes_off and attribute_filter is not None:
        errors.append("attributeFilter requires attributes to be true")

    character_data_off = 'character_data' in raw and not raw['character_data']
    if character_data_off and raw.get('character_data_old_value'):
        errors.append("characterDataOldValue requires characterData to be true")

    return errors


@dataclass
class ContextConfig:
    """Tuning knobs for a TreeContext.

    The defaults are correct for almost every use; the switches exist for
    memory-constrained hosts and for reproducing legacy behaviour in tests.
    """

    cache_enabled: bool = True               # Memoize ancestor registration lookups
    cache_max_entries: int = 10000           # LRU bound for the registration cache
    share_records: bool = True               # Share identical records across observers
    invalidate_on_unsubscribe: bool = True   # Drop cached lookups when observers leave

    @classmethod
    def uncached(cls) -> 'ContextConfig':
        """Create config that always walks the ancestor chain.

        Returns:
            ContextConfig with the registration cache disabled
        """
        return cls(cache_enabled=False)

    @classmethod
    def memory_lean(cls, cache_max_entries: int = 1000) -> 'ContextConfig':
        """Create config with a small cache bound.

        Args:
            cache_max_entries: Maximum number of memoized lookups

        Returns:
            ContextConfig for memory-constrained hosts
        """
        return cls(cache_max_entries=cache_max_entries)

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.cache_enabled and self.cache_max_entries <= 0:
            errors.append("cache_max_entries must be positive when the cache is enabled")

        return errors
