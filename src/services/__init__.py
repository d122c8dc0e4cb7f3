"""Services package - path densification and profile building."""

from services.path_sampler import densify, segment_point_count
from services.profile_builder import (
    Profile,
    ProfileBuilder,
    profile_to_records,
    summarize_profile,
    summary_to_record,
)

__all__ = [
    'Profile',
    'ProfileBuilder',
    'densify',
    'profile_to_records',
    'segment_point_count',
    'summarize_profile',
    'summary_to_record',
]
