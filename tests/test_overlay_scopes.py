"""
Tests for the overlay path taken around composition scopes.

A scope host's children (and everything inside a scope) are mutated on
the logical overlay; the physical primitive is applied wherever the
reference node physically lives, which a renderer is free to change.
"""

import pytest

from overlaytreelib import HierarchyRequestError, TreeContext, WrongContextError
from overlaytreelib.testing import assert_logical_tree_valid


@pytest.fixture
def context():
    return TreeContext()


@pytest.fixture
def mutator(context):
    return context.mutator


@pytest.fixture
def host(context):
    host = context.create_element('host')
    context.mutator.append(context.document, host)
    return host


@pytest.fixture
def scope(context, host):
    return context.attach_scope(host)


def physical_children(context, node):
    return list(context.physical.get_children(node))


class TestAttachScope:
    """attach_scope wiring."""

    def test_scope_root_and_host(self, context, host, scope):
        assert scope.host is host
        assert host.shadow_scope is scope
        assert scope.root.owner_scope is scope
        assert scope.is_root(scope.root)
        assert scope.dirty

    def test_cannot_attach_twice(self, context, host, scope):
        with pytest.raises(HierarchyRequestError):
            context.attach_scope(host)

    def test_only_elements_host_scopes(self, context):
        with pytest.raises(HierarchyRequestError):
            context.attach_scope(context.create_text("x"))

    def test_host_from_other_context(self, context):
        with pytest.raises(WrongContextError):
            context.attach_scope(TreeContext().create_element('alien'))

    def test_scope_root_cannot_be_inserted(self, context, mutator, scope):
        with pytest.raises(HierarchyRequestError):
            mutator.append(context.document, scope.root)


class TestOverlayPath:
    """Mutations under a host go through the logical overlay."""

    def test_append_to_host_overlays_children(self, context, mutator, host, scope):
        a = context.create_element('a')
        mutator.append(host, a)

        assert host.child_nodes == [a]
        assert host.is_overlaid
        assert a.is_overlaid
        assert physical_children(context, host) == [a]
        assert_logical_tree_valid(context.document)

    def test_logical_view_survives_physical_redistribution(self, context, mutator, host, scope):
        a = context.create_element('a')
        mutator.append(host, a)

        # A renderer moves the node somewhere else physically.
        rendered = context.create_element('rendered')
        context.physical.insert_before(rendered, a, None)

        assert a.parent is host
        assert host.child_nodes == [a]
        assert physical_children(context, host) == []

        b = context.create_element('b')
        mutator.append(host, b)
        assert host.child_nodes == [a, b]
        assert physical_children(context, host) == [b]
        assert_logical_tree_valid(context.document)

    def test_insert_goes_to_reference_physical_parent(self, context, mutator, host, scope):
        a, b = context.create_element('a'), context.create_element('b')
        mutator.append(host, a)
        mutator.append(host, b)
        rendered = context.create_element('rendered')
        context.physical.insert_before(rendered, a, None)

        c = context.create_element('c')
        mutator.insert(host, c, a)

        assert host.child_nodes == [c, a, b]
        assert physical_children(context, rendered) == [c, a]
        assert_logical_tree_valid(context.document)

    def test_remove_from_host_detaches_physically_elsewhere(self, context, mutator, host, scope):
        observer = context.create_observer(lambda records, obs: None)
        observer.subscribe(host, childList=True)
        a, b, c = (context.create_element(n) for n in 'abc')
        for node in (a, b, c):
            mutator.append(host, node)
        rendered = context.create_element('rendered')
        context.physical.insert_before(rendered, b, None)
        observer.take_records()

        mutator.remove(host, b)

        assert host.child_nodes == [a, c]
        assert b.parent is None
        assert not b.is_overlaid
        assert physical_children(context, rendered) == []
        record, = observer.take_records()
        assert record.removed_nodes == (b,)
        assert record.previous_sibling is a
        assert record.next_sibling is c
        assert_logical_tree_valid(context.document)

    def test_replace_under_host(self, context, mutator, host, scope):
        a, b = context.create_element('a'), context.create_element('b')
        mutator.append(host, a)
        mutator.append(host, b)

        new = context.create_element('new')
        mutator.replace(host, new, a)

        assert host.child_nodes == [new, b]
        assert a.parent is None
        assert_logical_tree_valid(context.document)

    def test_set_text_content_on_host(self, context, mutator, host, scope):
        mutator.append(host, context.create_element('a'))

        mutator.set_text_content(host, "text")

        text, = host.child_nodes
        assert text.parent is host
        assert host.text_content == "text"
        assert_logical_tree_valid(context.document)

    def test_mutations_mark_scope_dirty(self, context, mutator, host, scope):
        invalidations = []
        scope.add_listener(on_invalidate=invalidations.append)
        scope.mark_clean()

        mutator.append(host, context.create_element('a'))

        assert scope.dirty
        assert invalidations and invalidations[0] is scope


class TestLeavingTheOverlay:
    """Moving out of a host and back to the physical path."""

    def test_move_out_of_host_uses_overlay_then_physical_path_clears_it(self, context, mutator, host, scope):
        plain = context.create_element('plain')
        mutator.append(context.document, plain)
        a = context.create_element('a')
        mutator.append(host, a)

        mutator.append(plain, a)

        assert plain.child_nodes == [a]
        assert host.child_nodes == []
        assert plain.is_overlaid

        z = context.create_element('z')
        mutator.append(plain, z)

        assert plain.child_nodes == [a, z]
        assert not plain.is_overlaid
        assert not a.is_overlaid
        assert physical_children(context, plain) == [a, z]
        assert_logical_tree_valid(context.document)

    def test_removed_node_overlay_collapses_when_it_matches(self, context, mutator, host, scope):
        inner = context.create_element('inner')
        mutator.append(scope.root, inner)
        leaf = context.create_element('leaf')
        mutator.append(inner, leaf)
        assert inner.is_overlaid

        mutator.remove(scope.root, inner)

        assert not inner.is_overlaid
        assert inner.child_nodes == [leaf]
        assert_logical_tree_valid(inner)


class TestScopeHooks:
    """nodes_were_added / node_was_removed notifications."""

    def test_added_nodes_join_the_scope(self, context, mutator, scope):
        added = []
        scope.add_listener(on_added=lambda s, nodes: added.append(list(nodes)))
        branch = context.create_element('branch')
        leaf = context.create_element('leaf')
        mutator.append(branch, leaf)

        mutator.append(scope.root, branch)

        assert added == [[branch]]
        assert branch.owner_scope is scope
        assert leaf.owner_scope is scope

    def test_removed_nodes_leave_the_scope(self, context, mutator, scope):
        removed = []
        scope.add_listener(on_removed=lambda s, node: removed.append(node))
        branch = context.create_element('branch')
        leaf = context.create_element('leaf')
        mutator.append(scope.root, branch)
        mutator.append(branch, leaf)

        mutator.remove(scope.root, branch)

        assert removed == [branch]
        assert branch.owner_scope is None
        assert leaf.owner_scope is None

    def test_hooks_run_before_record_is_queued(self, context, mutator, scope):
        observer = context.create_observer(lambda records, obs: None)
        observer.subscribe(scope.root, childList=True)
        queued_at_hook = []
        scope.add_listener(on_added=lambda s, nodes: queued_at_hook.append(observer.pending_count))

        mutator.append(scope.root, context.create_element('a'))

        assert queued_at_hook == [0]
        assert observer.pending_count == 1

    def test_scope_members_use_overlay_path(self, context, mutator, scope):
        branch = context.create_element('branch')
        mutator.append(scope.root, branch)
        mutator.append(branch, context.create_element('leaf'))

        assert scope.root.is_overlaid
        assert branch.is_overlaid
        assert_logical_tree_valid(scope.root)
