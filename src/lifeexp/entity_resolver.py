"""Country name standardization.

Raw country strings are mapped onto the naming used by the World Bank,
UN and WHO through an ordered table of exact and substring rules. The
first matching rule wins; an unmatched name is its own standardized name.
The table is an immutable value handed to the resolver at construction,
so two runs with different mapping versions never share state.
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from lifeexp.exceptions import ConfigurationError
from lifeexp.logging_config import create_logger
from lifeexp.models import CountryIdentity

logger = create_logger(__name__)

EXACT = "exact"
CONTAINS = "contains"


@dataclass(frozen=True)
class MappingRule:
    """Map a raw name (or any name containing `pattern`) to a standard name."""

    pattern: str
    standardized_name: str
    match: str = EXACT

    def __post_init__(self):
        if self.match not in (EXACT, CONTAINS):
            raise ConfigurationError(
                f"Unknown match type {self.match!r} for pattern {self.pattern!r}"
            )
        if not self.pattern or not self.standardized_name:
            raise ConfigurationError("Mapping rules need a pattern and a standardized name")

    def matches(self, name: str) -> bool:
        if self.match == CONTAINS:
            return self.pattern in name
        return name == self.pattern


@dataclass(frozen=True)
class CountryMappingTable:
    """Ordered, read-only mapping rules plus ISO-3 codes by standardized name."""

    rules: Tuple[MappingRule, ...]
    iso_codes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "iso_codes", MappingProxyType(dict(self.iso_codes)))

    def extend(
        self,
        rules: Iterable[MappingRule],
        iso_codes: Optional[Mapping[str, str]] = None,
    ) -> "CountryMappingTable":
        """Return a new table whose `rules` take precedence over these ones."""
        merged_codes = dict(self.iso_codes)
        merged_codes.update(iso_codes or {})
        return CountryMappingTable(rules=tuple(rules) + self.rules, iso_codes=merged_codes)


DEFAULT_RULES: Tuple[MappingRule, ...] = (
    MappingRule("Bolivia", "Bolivia (Plurinational State of)"),
    MappingRule("Brunei", "Brunei Darussalam"),
    MappingRule("Cape Verde", "Cabo Verde"),
    MappingRule("Congo", "Congo"),
    MappingRule("Democratic Republic of Congo", "Congo (Democratic Republic of the)"),
    MappingRule(
        "Democratic People's Republic of Korea",
        "Korea (Democratic People's Republic of)",
    ),
    MappingRule("Republic of Korea", "Korea (Republic of)"),
    MappingRule("Côte d'Ivoire", "Côte d'Ivoire"),
    MappingRule("Czech Republic", "Czechia"),
    MappingRule("Iran", "Iran (Islamic Republic of)"),
    MappingRule("Iran", "Iran (Islamic Republic of)", match=CONTAINS),
    MappingRule("Lao People's Democratic Republic", "Lao People's Democratic Republic"),
    MappingRule("Laos", "Lao People's Democratic Republic"),
    MappingRule("Micronesia", "Micronesia (Federated States of)"),
    MappingRule("Micronesia (Federated States of)", "Micronesia (Federated States of)"),
    MappingRule("Moldova", "Moldova (Republic of)"),
    MappingRule("Republic of Moldova", "Moldova (Republic of)"),
    MappingRule("Macedonia", "North Macedonia"),
    MappingRule("The former Yugoslav republic of Macedonia", "North Macedonia"),
    MappingRule("Palestine", "Palestine, State of"),
    MappingRule("Russian Federation", "Russian Federation"),
    MappingRule("Russia", "Russian Federation"),
    MappingRule("Syria", "Syrian Arab Republic"),
    MappingRule("Syrian Arab Republic", "Syrian Arab Republic"),
    MappingRule("United Republic of Tanzania", "Tanzania (United Republic of)"),
    MappingRule("Tanzania", "Tanzania (United Republic of)"),
    MappingRule("Timor-Leste", "Timor-Leste"),
    MappingRule("East Timor", "Timor-Leste"),
    MappingRule("United Kingdom", "United Kingdom"),
    MappingRule("United Kingdom of Great Britain and Northern Ireland", "United Kingdom"),
    MappingRule("United States", "United States of America"),
    MappingRule("United States of America", "United States of America"),
    MappingRule("USA", "United States of America"),
    MappingRule("Venezuela", "Venezuela (Bolivarian Republic of)"),
    MappingRule(
        "Venezuela (Bolivarian Republic of)", "Venezuela (Bolivarian Republic of)"
    ),
    MappingRule("Viet Nam", "Viet Nam"),
    MappingRule("Vietnam", "Viet Nam"),
)

DEFAULT_ISO_CODES: Dict[str, str] = {
    "United States of America": "USA",
    "United Kingdom": "GBR",
    "Germany": "DEU",
    "France": "FRA",
    "China": "CHN",
    "India": "IND",
    "Brazil": "BRA",
    "Russian Federation": "RUS",
    "Japan": "JPN",
    "Mexico": "MEX",
    "Bolivia (Plurinational State of)": "BOL",
    "Brunei Darussalam": "BRN",
    "Cabo Verde": "CPV",
    "Congo": "COG",
    "Congo (Democratic Republic of the)": "COD",
    "Korea (Democratic People's Republic of)": "PRK",
    "Korea (Republic of)": "KOR",
    "Côte d'Ivoire": "CIV",
    "Czechia": "CZE",
    "Iran (Islamic Republic of)": "IRN",
    "Lao People's Democratic Republic": "LAO",
    "Micronesia (Federated States of)": "FSM",
    "Moldova (Republic of)": "MDA",
    "North Macedonia": "MKD",
    "Palestine, State of": "PSE",
    "Syrian Arab Republic": "SYR",
    "Tanzania (United Republic of)": "TZA",
    "Timor-Leste": "TLS",
    "Venezuela (Bolivarian Republic of)": "VEN",
    "Viet Nam": "VNM",
}

DEFAULT_MAPPING_TABLE = CountryMappingTable(rules=DEFAULT_RULES, iso_codes=DEFAULT_ISO_CODES)


def load_mapping_table(
    path: str, base: CountryMappingTable = DEFAULT_MAPPING_TABLE
) -> CountryMappingTable:
    """Extend `base` with rules from a JSON file.

    The file holds ``{"rules": [{"pattern": ..., "standardized_name": ...,
    "match": "exact"|"contains"}], "iso_codes": {name: code}}``.

    :raises ConfigurationError: If the file is missing or malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Unable to read country mapping file {path}: {e}")

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Country mapping file {path} must hold a JSON object")

    try:
        rules = [
            MappingRule(
                pattern=item["pattern"],
                standardized_name=item["standardized_name"],
                match=item.get("match", EXACT),
            )
            for item in payload.get("rules", [])
        ]
    except (KeyError, TypeError, AttributeError) as e:
        raise ConfigurationError(f"Malformed rule in country mapping file {path}: {e}")

    logger.info(f"Loaded {len(rules)} country mapping rules from {path}")
    return base.extend(rules, payload.get("iso_codes"))


class EntityResolver:
    """Resolve raw country names against an immutable mapping table."""

    def __init__(self, mapping_table: Optional[CountryMappingTable] = None) -> None:
        self.mapping_table = mapping_table or DEFAULT_MAPPING_TABLE

    def match_rule(self, raw_name: str) -> Optional[MappingRule]:
        name = raw_name.strip()
        for rule in self.mapping_table.rules:
            if rule.matches(name):
                return rule
        return None

    def resolve(self, raw_name: str) -> CountryIdentity:
        """Map a raw name to its standardized identity. Total over strings."""
        rule = self.match_rule(raw_name)
        standardized = rule.standardized_name if rule else raw_name.strip()
        return CountryIdentity(
            original_name=raw_name,
            standardized_name=standardized,
            iso_code=self.mapping_table.iso_codes.get(standardized),
        )

    def resolve_all(
        self, raw_names: Iterable[str]
    ) -> Tuple[Dict[str, CountryIdentity], List[str]]:
        """Resolve each distinct name once.

        :return: identities keyed by raw name, and the sorted raw names
            no rule matched (passed through unchanged)
        """
        identities: Dict[str, CountryIdentity] = {}
        unresolved: List[str] = []
        for raw_name in sorted(set(raw_names)):
            identities[raw_name] = self.resolve(raw_name)
            if self.match_rule(raw_name) is None:
                unresolved.append(raw_name)
                logger.debug(f"No mapping rule for '{raw_name}', keeping name as-is")

        standardized = {identity.standardized_name for identity in identities.values()}
        logger.info(
            f"Resolved {len(identities)} raw country names to "
            f"{len(standardized)} standardized identities "
            f"({len(unresolved)} passed through unchanged)"
        )
        return identities, unresolved
