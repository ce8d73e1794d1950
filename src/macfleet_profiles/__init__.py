"""macfleet profiles library."""

from .corrector import ProfilesCorrector
from .exceptions import ProfilesError, ProfilesErrorCodes
from .parser import is_dep_enrolled, parse_work_counts
from .probe import ProfilesStatusProbe, check_enrollment, profiles_status

__all__ = [
    "ProfilesCorrector",
    "ProfilesStatusProbe",
    "ProfilesError",
    "ProfilesErrorCodes",
    "check_enrollment",
    "profiles_status",
    "parse_work_counts",
    "is_dep_enrolled",
]
