"""Testing utilities for OverlayTreeLib consumers."""

from .fixtures import CacheTestHelper, RecordingObserver, assert_logical_tree_valid

__all__ = ['CacheTestHelper', 'RecordingObserver', 'assert_logical_tree_valid']
