##########################################################################################
#
# Script name: platforms.py
#
# Description: Platform and release-channel enumeration for the build matrix.
#
##########################################################################################

import os


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

# The default (Linux) tree is the empty platform and lives at the data root.
DEFAULT_PLATFORM = ''
LINUX_PLATFORM = 'linux'
KNOWN_PLATFORMS = ['mac', 'mac-arm64', 'win', 'android', 'ios']
KNOWN_CHANNELS = ['stable', 'beta', 'rc', 'alpha']


# ****************************************************************************************
# Functions
# ****************************************************************************************


def normalize_platform(platform: str) -> str:
    if platform == LINUX_PLATFORM:
        return DEFAULT_PLATFORM
    return platform or DEFAULT_PLATFORM


def platform_data_dir(root: str, platform: str, channel: str) -> str:
    if not normalize_platform(platform):
        return root
    return os.path.join(root, platform, channel)


def expand_build_matrix(platform: str = '', channel: str = '') -> list[tuple[str, str]]:
    if platform == LINUX_PLATFORM:
        return [(DEFAULT_PLATFORM, channel)]
    if platform and channel:
        return [(platform, channel)]
    if platform:
        return [(platform, known) for known in KNOWN_CHANNELS]
    if channel:
        return [(DEFAULT_PLATFORM, channel)] + [(known, channel) for known in KNOWN_PLATFORMS]
    matrix = [(DEFAULT_PLATFORM, '')]
    for known_platform in KNOWN_PLATFORMS:
        for known_channel in KNOWN_CHANNELS:
            matrix.append((known_platform, known_channel))
    return matrix
