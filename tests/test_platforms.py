##########################################################################################
#
# Script name: test_platforms.py
#
# Description: Build matrix expansion tests.
#
##########################################################################################

import os

from i2p_news_feed.platforms import (
    KNOWN_CHANNELS,
    KNOWN_PLATFORMS,
    expand_build_matrix,
    normalize_platform,
    platform_data_dir,
)


def test_platform_data_dir_default_tree_is_root() -> None:
    assert platform_data_dir('data', '', 'stable') == 'data'


def test_platform_data_dir_named_platform() -> None:
    assert platform_data_dir('data', 'mac', 'beta') == os.path.join('data', 'mac', 'beta')


def test_matrix_with_platform_and_channel_is_single_pair() -> None:
    assert expand_build_matrix('win', 'rc') == [('win', 'rc')]


def test_matrix_with_platform_only_covers_every_channel() -> None:
    assert expand_build_matrix('android') == [('android', channel) for channel in KNOWN_CHANNELS]


def test_matrix_with_channel_only_includes_default_tree() -> None:
    matrix = expand_build_matrix(channel='beta')
    assert matrix[0] == ('', 'beta')
    assert matrix[1:] == [(platform, 'beta') for platform in KNOWN_PLATFORMS]


def test_full_matrix_starts_with_default_tree() -> None:
    matrix = expand_build_matrix()
    assert matrix[0] == ('', '')
    assert len(matrix) == 1 + len(KNOWN_PLATFORMS) * len(KNOWN_CHANNELS)
    assert len(set(matrix)) == len(matrix)


def test_linux_is_the_default_tree() -> None:
    assert normalize_platform('linux') == ''
    assert normalize_platform('mac') == 'mac'
    assert platform_data_dir('data', 'linux', 'stable') == 'data'
    assert platform_data_dir('data', 'linux', '') == 'data'


def test_matrix_for_linux_is_default_tree_only() -> None:
    assert expand_build_matrix('linux') == [('', '')]
    assert expand_build_matrix('linux', 'stable') == [('', 'stable')]
