"""
Cascading selection resolver.

Narrows a two-level configuration map (environment -> market -> details)
into the options offered for each selection and the defaults seeded into
the market-dependent fields.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class MarketDetails(BaseModel):
    """Connection details registered for one market of one environment."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    host_url: str = Field(
        serialization_alias='hostUrl',
        validation_alias=AliasChoices('hostUrl', 'hosturl', 'host_url'),
    )
    token_url: str = Field(
        serialization_alias='tokenUrl',
        validation_alias=AliasChoices('tokenUrl', 'tokenurl', 'token_url'),
    )
    app_ids: Tuple[str, ...] = Field(
        default=(),
        serialization_alias='appIds',
        validation_alias=AliasChoices('appIds', 'appids', 'app_ids'),
    )

    def as_defaults(self) -> Dict[str, Any]:
        """Field defaults keyed the way the form names them."""
        defaults = self.model_dump(by_alias=True)
        defaults['appIds'] = list(self.app_ids)
        return defaults


# environment -> market -> details, read-only
ConfigurationMap = Mapping[str, Mapping[str, MarketDetails]]

EMPTY_CONFIGURATION: ConfigurationMap = MappingProxyType({})


def parse_configuration_map(raw: Any, source: str = "configuration") -> ConfigurationMap:
    """
    Validate a raw environment -> market -> details document.

    Args:
        raw: Parsed JSON/YAML document
        source: Description of where the document came from

    Returns:
        Read-only ConfigurationMap

    Raises:
        ConfigurationError: If the document does not have the two-level shape
    """
    if not isinstance(raw, dict):
        raise ConfigurationError(source, message=f"Configuration map from {source} must be a mapping")

    environments: Dict[str, Mapping[str, MarketDetails]] = {}
    for environment, markets in raw.items():
        if not isinstance(markets, dict):
            raise ConfigurationError(
                source, message=f"Environment {environment!r} in {source} must map markets to details"
            )
        parsed: Dict[str, MarketDetails] = {}
        for market, details in markets.items():
            try:
                parsed[str(market)] = MarketDetails.model_validate(details)
            except ValidationError as e:
                raise ConfigurationError(source, e, message=(
                    f"Invalid details for {environment}/{market} in {source}: {e.error_count()} error(s)"
                )) from e
        environments[str(environment)] = MappingProxyType(parsed)

    logger.info(f"Parsed configuration map from {source}: {len(environments)} environments")
    return MappingProxyType(environments)


def list_secondary_keys(config_map: Optional[ConfigurationMap], primary_key: Optional[str]) -> List[str]:
    """
    Markets registered under ``primary_key``.

    An unknown, empty or missing primary key yields ``[]``; "no options" is
    a valid answer, never an error.
    """
    if not config_map or not primary_key:
        return []
    markets = config_map.get(primary_key)
    if not markets:
        return []
    return list(markets.keys())


def resolve_details(config_map: Optional[ConfigurationMap], primary_key: Optional[str],
                    secondary_key: Optional[str]) -> Optional[MarketDetails]:
    """Details for (environment, market), or None when either key is absent."""
    if not config_map or not primary_key or not secondary_key:
        return None
    markets = config_map.get(primary_key)
    if not markets:
        return None
    return markets.get(secondary_key)


def display_label(key: str) -> str:
    """Display form of a market key. The lookup key itself keeps its casing."""
    return key.upper()


@dataclass(frozen=True)
class SelectionChange:
    """
    Result of changing one of the cascade selections.

    Attributes:
        primary: Selected environment after the change
        secondary: Selected market after the change (None after a reset)
        secondary_keys: Markets now selectable
        details: Resolved details for the current pair, if any
        clear_paths: Field paths whose state must be cleared before re-seeding
    """

    primary: Optional[str]
    secondary: Optional[str]
    secondary_keys: Tuple[str, ...] = ()
    details: Optional[MarketDetails] = None
    clear_paths: Tuple[str, ...] = field(default=())

    @property
    def defaults(self) -> Dict[str, Any]:
        return self.details.as_defaults() if self.details is not None else {}


class CascadingSelectionResolver:
    """Applies environment/market selections and tells the caller what to clear."""

    def __init__(self, primary_path: str, secondary_path: str,
                 primary_dependents: Tuple[str, ...] = (),
                 secondary_dependents: Tuple[str, ...] = ()):
        """
        Args:
            primary_path: Field holding the environment key
            secondary_path: Field holding the market key
            primary_dependents: Every field path gated (transitively) by the environment,
                the market field included
            secondary_dependents: Every field path gated by the market
        """
        self.primary_path = primary_path
        self.secondary_path = secondary_path
        self.primary_dependents = tuple(primary_dependents)
        self.secondary_dependents = tuple(secondary_dependents)

    @classmethod
    def for_definition(cls, definition: Any) -> Optional['CascadingSelectionResolver']:
        """Build a resolver from a FormDefinition's cascade section, if it has one."""
        cascade = definition.cascade
        if cascade is None:
            return None
        primary_dependents = tuple(schema.name for schema in definition.dependents_of(cascade.primary))
        secondary_dependents = tuple(schema.name for schema in definition.dependents_of(cascade.secondary))
        return cls(cascade.primary, cascade.secondary, primary_dependents, secondary_dependents)

    def select_primary(self, config_map: Optional[ConfigurationMap], primary_key: Optional[str]) -> SelectionChange:
        """
        Select an environment.

        The market selection is always reset and every field depending on
        the environment is scheduled for clearing, so nothing seeded from
        the previous market survives.
        """
        keys = list_secondary_keys(config_map, primary_key)
        logger.debug(f"Environment selected: {primary_key!r} -> {len(keys)} markets")
        return SelectionChange(
            primary=primary_key or None,
            secondary=None,
            secondary_keys=tuple(keys),
            details=None,
            clear_paths=self.primary_dependents,
        )

    def select_secondary(self, config_map: Optional[ConfigurationMap], primary_key: Optional[str],
                         secondary_key: Optional[str]) -> SelectionChange:
        """Select a market under the current environment and resolve its details."""
        keys = list_secondary_keys(config_map, primary_key)
        if secondary_key and secondary_key not in keys:
            logger.warning(f"Market {secondary_key!r} is not registered under {primary_key!r}")
            secondary_key = None
        details = resolve_details(config_map, primary_key, secondary_key)
        return SelectionChange(
            primary=primary_key or None,
            secondary=secondary_key or None,
            secondary_keys=tuple(keys),
            details=details,
            clear_paths=self.secondary_dependents,
        )

    def options(self, config_map: Optional[ConfigurationMap], primary_key: Optional[str]) -> List[Tuple[str, str]]:
        """(lookup key, display label) pairs for the market selector."""
        return [(key, display_label(key)) for key in list_secondary_keys(config_map, primary_key)]
