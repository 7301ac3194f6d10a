# regions.py
"""State name / code lookups and Census regions used to join the datasets."""

import re
from typing import Dict, Final, List, Optional

STATE_NAMES: Final[Dict[str, str]] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming",
    "DC": "District of Columbia", "PR": "Puerto Rico",
}

_NAME_TO_CODE: Final[Dict[str, str]] = {name: code for code, name in STATE_NAMES.items()}

# Reporting jurisdictions that are not states
_SPECIAL_CASES: Final[Dict[str, str]] = {
    "New York City": "NY",
    "Commonwealth of the Northern Mariana Islands": "MP",
    "Virgin Islands": "VI",
}

CENSUS_REGIONS: Final[Dict[str, List[str]]] = {
    "northeast": ["ME", "NH", "VT", "MA", "RI", "CT", "NY", "NJ", "PA"],
    "midwest": ["OH", "MI", "IN", "IL", "WI", "MN", "IA", "MO", "ND", "SD", "NE", "KS"],
    "south": ["DE", "MD", "DC", "VA", "WV", "NC", "SC", "GA", "FL", "KY", "TN",
              "AL", "MS", "AR", "LA", "OK", "TX"],
    "west": ["MT", "ID", "WY", "CO", "NM", "AZ", "UT", "NV", "WA", "OR", "CA", "AK", "HI"],
}

_STATE_CODE_RE = re.compile(r"^[A-Z]{2}$")


def get_state_code(state_name) -> Optional[str]:
    """
    Converts a state name as it appears in the source data to a two-letter code.

    Two-letter codes are returned unchanged. Returns None for names that
    cannot be mapped.
    """
    if not isinstance(state_name, str):
        return None
    state_name = state_name.strip()
    if _STATE_CODE_RE.match(state_name):
        return state_name
    if state_name in _SPECIAL_CASES:
        return _SPECIAL_CASES[state_name]
    return _NAME_TO_CODE.get(state_name)


def get_state_name(state_code: str) -> str:
    return STATE_NAMES.get(state_code, state_code)


def get_region(state_code: str) -> Optional[str]:
    for region, states in CENSUS_REGIONS.items():
        if state_code in states:
            return region
    return None
