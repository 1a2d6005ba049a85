"""
Survey version numbers.

Versions are stored as X.Y decimals where Y is a single digit: v1.0 -> v1.1 ->
... -> v1.9 -> v2.0. A version family is a root survey plus every survey reachable from it
through `parent` links (a restore points at the previous latest, not the root).
"""
import math
from decimal import Decimal


def _attr(obj, name):
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name)


def _parent_id(obj):
    if isinstance(obj, dict):
        return obj.get("parent_id")
    return obj.parent_id


def _same_id(a, b):
    return a is not None and b is not None and str(a) == str(b)


def parse_version(version):
    """Split a numeric version into (major, minor), e.g. 1.2 -> (1, 2)."""
    version = float(version)
    major = math.floor(version)
    minor = round((version - major) * 10)
    return major, minor


def calculate_next_version(current_version, is_major=False):
    """
    >>> calculate_next_version(1.0)
    1.1
    >>> calculate_next_version(1.9)
    2.0
    >>> calculate_next_version(1.5, is_major=True)
    2.0
    """
    major, minor = parse_version(current_version)
    if is_major:
        return float(major + 1)
    next_minor = minor + 1
    if next_minor >= 10:
        return float(major + 1)
    return round(major + next_minor / 10, 1)


def to_decimal(version):
    return Decimal(str(round(float(version), 1)))


def format_version(version):
    return f"v{float(version):.1f}"


def is_valid_version(version):
    try:
        value = float(version)
    except (TypeError, ValueError):
        return False
    if value < 1.0:
        return False
    _, minor = parse_version(value)
    return 0 <= minor <= 9


def _root_ids(surveys):
    """Map each survey id (as str) to the id of its family root."""
    parents = {str(_attr(s, "id")): _parent_id(s) for s in surveys}
    roots = {}
    for sid in parents:
        current, seen = sid, set()
        # a parent outside `surveys` is treated as the root
        while parents.get(current) is not None and current not in seen:
            seen.add(current)
            current = str(parents[current])
        roots[sid] = current
    return roots


def _family(surveys, survey_id):
    roots = _root_ids(surveys)
    root = roots.get(str(survey_id), str(survey_id))
    return [s for s in surveys if roots[str(_attr(s, "id"))] == root]


def find_latest_version(surveys, root_id):
    """Highest-versioned survey in `root_id`'s family, or None."""
    family = _family(surveys, root_id)
    if not family:
        return None
    return max(family, key=lambda s: float(_attr(s, "version")))


def is_latest_version(survey, surveys):
    latest = find_latest_version(surveys, _attr(survey, "id"))
    return latest is not None and _same_id(_attr(latest, "id"), _attr(survey, "id"))


def get_version_history(survey_id, surveys):
    """Every survey in `survey_id`'s family, oldest version first."""
    if not any(_same_id(_attr(s, "id"), survey_id) for s in surveys):
        return []
    return sorted(_family(surveys, survey_id), key=lambda s: float(_attr(s, "version")))


def get_version_family(surveys, major_version=None):
    if major_version is None:
        return list(surveys)
    return [s for s in surveys if parse_version(_attr(s, "version"))[0] == major_version]
