"""
Tests for text leaf collection.

Run with: pytest tests/ -v
"""

from types import SimpleNamespace

from babelframe.collector import collect_selection, collect_text_leaves
from babelframe.structures import NodeKind, TextLeaf

from scene_factory import card, frame, rectangle, text


class TestCollectTextLeaves:
    """Tests for pre-order extraction."""

    def test_pre_order_across_nesting(self):
        """Leaves come out in document order, descending into groups."""
        leaves = collect_text_leaves(card())
        assert [leaf.id for leaf in leaves] == ["1:2", "1:4", "1:6"]
        assert [leaf.content for leaf in leaves] == ["Hello", "World", "Save"]

    def test_leaf_snapshot_fields(self):
        """Each leaf captures id, full content and display name."""
        root = frame("9:1", [text("9:2", "Line one\nLine two", name="Title")])
        assert collect_text_leaves(root) == [
            TextLeaf(id="9:2", content="Line one\nLine two", display_name="Title")
        ]

    def test_text_node_emitted_before_its_children(self):
        """A text node with unexpected children still precedes them."""
        odd = text("2:1", "Parent")
        odd.append_child(text("2:2", "Child"))
        leaves = collect_text_leaves(frame("2:0", [odd, text("2:3", "After")]))
        assert [leaf.id for leaf in leaves] == ["2:1", "2:2", "2:3"]

    def test_no_text_descendants(self):
        """A tree without text nodes yields an empty list."""
        root = frame("3:1", [rectangle("3:2"), frame("3:3", [rectangle("3:4")])])
        assert collect_text_leaves(root) == []

    def test_none_root(self):
        """A missing root yields an empty list."""
        assert collect_text_leaves(None) == []

    def test_length_matches_text_node_count(self):
        """The number of leaves equals the number of reachable text nodes."""
        root = card()
        expected = sum(1 for node in root.walk() if node.kind is NodeKind.TEXT)
        assert len(collect_text_leaves(root)) == expected

    def test_result_is_recomputed_after_mutation(self):
        """Collecting again after a write reflects the new content."""
        root = card()
        before = collect_text_leaves(root)
        root.children[0].characters = "Hola"
        after = collect_text_leaves(root)
        assert before[0].content == "Hello"
        assert after[0].content == "Hola"

    def test_inconsistent_nodes_contribute_nothing(self):
        """Nodes with unusable data are skipped rather than raising."""
        broken_children = SimpleNamespace(kind=NodeKind.CONTAINER, children="oops")
        missing_id = SimpleNamespace(kind=NodeKind.TEXT, id=None, characters="x", children=[])
        no_characters = SimpleNamespace(kind=NodeKind.TEXT, id="5:9", characters=None)
        good = SimpleNamespace(kind=NodeKind.TEXT, id="5:2", characters="ok", name="ok")
        root = SimpleNamespace(
            kind=NodeKind.CONTAINER,
            children=[broken_children, missing_id, None, no_characters, good],
        )
        assert [leaf.id for leaf in collect_text_leaves(root)] == ["5:2"]

    def test_deep_tree(self):
        """Very deep trees do not exhaust the recursion limit."""
        root = frame("d:0")
        current = root
        for depth in range(1, 5000):
            child = frame(f"d:{depth}")
            current.append_child(child)
            current = child
        current.append_child(text("d:leaf", "Bottom"))
        assert [leaf.id for leaf in collect_text_leaves(root)] == ["d:leaf"]


class TestCollectSelection:
    """Tests for multi-node selections."""

    def test_concatenates_in_selection_order(self):
        """Each selected node contributes its leaves in turn."""
        first = frame("a:1", [text("a:2", "One")])
        second = text("b:1", "Two")
        leaves = collect_selection([second, first])
        assert [leaf.id for leaf in leaves] == ["b:1", "a:2"]

    def test_empty_selection(self):
        """No selected nodes means no leaves."""
        assert collect_selection([]) == []
