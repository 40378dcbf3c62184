import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from astdiff.change_tree import ChangeNode, LineRange, TokenChange
from astdiff.highlight import Segment, highlight
from astdiff.projector import INVALID_RANGE, MALFORMED_NODE, project


def node(kind, identifier="", a=None, b=None, children=(), tokens=(), line_a=None, line_b=None):
    return ChangeNode(
        change_kind=kind,
        identifier=identifier,
        description=f"{identifier} {kind}".strip(),
        range_a=LineRange(*a) if a else None,
        range_b=LineRange(*b) if b else None,
        line_a=line_a,
        line_b=line_b,
        children=tuple(children),
        token_changes=tuple(tokens),
    )


class TestProjectorScenarios(unittest.TestCase):
    def test_modified_line_with_token_change(self):
        change = TokenChange("foo", "bar", 4, 7, 4, 7)
        projection = project([node("modified", "stmt", a=(10, 10), b=(10, 10), tokens=[change])])

        entry = projection.map_a[10]
        self.assertEqual(entry.kind, "modified")
        self.assertEqual(entry.token_changes, (change,))
        self.assertIsNone(entry.counterpart_line)
        self.assertEqual(
            highlight("let foo = 1;", entry.token_changes, "a"),
            [Segment("let ", False), Segment("foo", True), Segment(" = 1;", False)],
        )

    def test_moved_modified_absorbs_nested_modified(self):
        change = TokenChange("x", "y", 2, 3, 2, 3)
        child = node("modified", "inner", a=(6, 6), b=(21, 21), tokens=[change])
        root = node("moved_modified", "block", a=(5, 8), b=(20, 23), children=[child])
        projection = project([root])

        self.assertEqual(projection.map_a[5].kind, "moved_modified")
        self.assertEqual(projection.map_a[5].counterpart_line, 20)
        self.assertEqual(projection.map_a[6].kind, "moved_modified")
        self.assertEqual(projection.map_a[6].description, "block moved_modified")
        self.assertEqual(projection.map_a[6].token_changes, (change,))
        for line in (7, 8):
            self.assertEqual(projection.map_a[line].kind, "moved_modified")
            self.assertEqual(projection.map_a[line].token_changes, ())
            self.assertIsNone(projection.map_a[line].counterpart_line)
        self.assertEqual(projection.map_b[20].counterpart_line, 5)
        self.assertEqual(projection.map_b[21].token_changes, (change,))

    def test_later_deleted_sibling_beats_modified(self):
        projection = project([node("modified", "first", a=(12, 12), b=(12, 12)), node("deleted", "second", a=(12, 12))])
        self.assertEqual(projection.map_a[12].kind, "deleted")

    def test_earlier_deleted_sibling_beats_modified(self):
        projection = project([node("deleted", "first", a=(12, 12)), node("modified", "second", a=(12, 12), b=(12, 12))])
        self.assertEqual(projection.map_a[12].kind, "deleted")


class TestProjectorMergeRule(unittest.TestCase):
    def test_added_or_deleted_child_overrides_ancestor(self):
        child = node("deleted", "gone", a=(3, 3))
        root = node("moved_modified", "block", a=(1, 5), b=(11, 15), children=[child])
        projection = project([root])
        self.assertEqual(projection.map_a[3].kind, "deleted")
        self.assertEqual(projection.map_a[2].kind, "moved_modified")

    def test_structural_parent_beats_deeper_modified_child(self):
        child = node("modified", "inner", a=(2, 2), b=(2, 2))
        root = node("deleted", "block", a=(1, 3), children=[child])
        projection = project([root])
        self.assertEqual(projection.map_a[2].kind, "deleted")
        self.assertEqual(projection.map_b[2].kind, "modified")

    def test_deeper_node_wins_when_not_absorbed(self):
        child = node("modified", "inner", a=(2, 2), b=(12, 12))
        root = node("moved", "block", a=(1, 3), b=(11, 13), children=[child])
        projection = project([root])
        self.assertEqual(projection.map_a[2].kind, "modified")
        self.assertEqual(projection.map_a[2].identifier, "inner")

    def test_absorption_reaches_grandchildren(self):
        change = TokenChange("a", "b", 0, 1, 0, 1)
        grandchild = node("modified", "leaf", a=(3, 3), b=(13, 13), tokens=[change])
        child = node("modified", "mid", a=(2, 4), b=(12, 14), children=[grandchild])
        root = node("moved_modified", "block", a=(1, 5), b=(11, 15), children=[child])
        projection = project([root])
        self.assertEqual(projection.map_a[3].kind, "moved_modified")
        self.assertEqual(projection.map_a[3].identifier, "block")
        self.assertEqual(projection.map_a[3].token_changes, (change,))

    def test_ties_go_to_first_root(self):
        projection = project(
            [
                node("modified", "first", a=(1, 1), b=(1, 1)),
                node("moved", "second", a=(1, 1), b=(5, 5)),
            ]
        )
        self.assertEqual(projection.map_a[1].identifier, "first")

    def test_result_does_not_depend_on_root_order_for_precedence(self):
        modified = node("modified", "m", a=(4, 6), b=(4, 6))
        added = node("added", "n", b=(5, 5))
        forward = project([modified, added])
        backward = project([added, modified])
        self.assertEqual(forward.map_b[5].kind, "added")
        self.assertEqual(backward.map_b[5].kind, "added")
        self.assertEqual(forward.map_a, backward.map_a)

    def test_token_changes_are_deduplicated(self):
        change = TokenChange("a", "b", 0, 1, 0, 1)
        child = node("modified", "inner", a=(1, 1), b=(1, 1), tokens=[change])
        root = node("moved_modified", "block", a=(1, 2), b=(3, 4), children=[child], tokens=[change])
        projection = project([root])
        self.assertEqual(projection.map_a[1].token_changes, (change,))

    def test_token_changes_attach_to_owning_entry(self):
        change = TokenChange("a", "b", 0, 1, 0, 1)
        child = node("deleted", "gone", a=(2, 2))
        root = node("modified", "block", a=(1, 3), b=(1, 2), children=[child], tokens=[change])
        projection = project([root])
        self.assertEqual(projection.map_a[2].kind, "deleted")
        self.assertEqual(projection.map_a[2].token_changes, (change,))


class TestProjectorRanges(unittest.TestCase):
    def test_every_line_of_range_is_marked(self):
        projection = project([node("deleted", "block", a=(3, 7))])
        self.assertEqual(sorted(projection.map_a), [3, 4, 5, 6, 7])
        self.assertEqual(projection.map_b, {})

    def test_a_only_node_never_creates_b_entries(self):
        change = TokenChange("a", "b", 0, 1, 0, 1)
        projection = project([node("modified", "block", a=(1, 2), tokens=[change])])
        self.assertEqual(projection.map_b, {})
        self.assertEqual(projection.map_a[1].token_changes, (change,))

    def test_move_badge_only_on_start_line(self):
        projection = project([node("moved", "add", a=(1, 3), b=(7, 9))])
        badges_a = [line for line, entry in projection.map_a.items() if entry.counterpart_line is not None]
        badges_b = [line for line, entry in projection.map_b.items() if entry.counterpart_line is not None]
        self.assertEqual(badges_a, [1])
        self.assertEqual(badges_b, [7])
        self.assertEqual(projection.map_a[1].counterpart_line, 7)
        self.assertEqual(projection.map_b[7].counterpart_line, 1)
        self.assertTrue(projection.map_a[1].is_badge)
        self.assertFalse(projection.map_a[2].is_badge)

    def test_move_badge_skipped_when_child_owns_start_line(self):
        child = node("deleted", "first", a=(5, 5))
        root = node("moved_modified", "block", a=(5, 8), b=(20, 23), children=[child])
        projection = project([root])
        self.assertEqual(projection.map_a[5].kind, "deleted")
        self.assertIsNone(projection.map_a[5].counterpart_line)
        self.assertEqual(projection.map_b[20].counterpart_line, 5)

    def test_legacy_line_only_fills_empty_slots(self):
        covered = node("deleted", "covered", line_a=2)
        free = node("added", "free", line_b=9)
        root = node("modified", "block", a=(1, 3), b=(1, 3), children=[covered, free])
        projection = project([root])
        self.assertEqual(projection.map_a[2].kind, "modified")
        self.assertEqual(projection.map_b[9].kind, "added")

    def test_range_fields_take_priority_over_legacy_on_same_side(self):
        both = ChangeNode(change_kind="deleted", identifier="x", range_a=LineRange(4, 5), line_a=9)
        projection = project([both])
        self.assertEqual(sorted(projection.map_a), [4, 5])

    def test_legacy_move_gets_counterpart(self):
        projection = project([node("moved", "stmt", line_a=3, line_b=8)])
        self.assertEqual(projection.map_a[3].counterpart_line, 8)
        self.assertEqual(projection.map_b[8].counterpart_line, 3)


class TestProjectorValidation(unittest.TestCase):
    def test_inverted_range_is_skipped_but_children_projected(self):
        child = node("deleted", "child", a=(10, 10))
        bad = node("modified", "broken", a=(5, 3), b=(5, 5), children=[child])
        sibling = node("added", "sibling", b=(30, 31))
        projection = project([bad, sibling])

        self.assertNotIn(5, projection.map_a)
        self.assertNotIn(5, projection.map_b)
        self.assertEqual(projection.map_a[10].kind, "deleted")
        self.assertEqual(sorted(projection.map_b), [30, 31])
        codes = [(item.code, item.identifier) for item in projection.diagnostics]
        self.assertIn((INVALID_RANGE, "broken"), codes)

    def test_node_without_lines_is_malformed(self):
        child = node("added", "child", b=(2, 2))
        projection = project([node("modified", "empty", children=[child])])
        self.assertEqual(projection.diagnostics[0].code, MALFORMED_NODE)
        self.assertEqual(projection.diagnostics[0].identifier, "empty")
        self.assertEqual(projection.map_b[2].kind, "added")

    def test_unknown_kind_is_malformed(self):
        projection = project([node("renamed", "odd", a=(1, 1), b=(1, 1))])
        self.assertEqual(projection.map_a, {})
        self.assertEqual(projection.diagnostics[0].code, MALFORMED_NODE)
        self.assertIn("renamed", str(projection.diagnostics[0]))

    def test_added_node_ignores_a_side(self):
        projection = project([node("added", "new", a=(1, 2), b=(4, 5))])
        self.assertEqual(projection.map_a, {})
        self.assertEqual(sorted(projection.map_b), [4, 5])
        self.assertEqual(len(projection.diagnostics), 1)

    def test_move_without_displacement_is_reported(self):
        projection = project([node("moved", "same", a=(3, 4), b=(3, 4))])
        self.assertEqual(projection.map_a[3].kind, "moved")
        self.assertEqual(len(projection.diagnostics), 1)

    def test_projection_is_idempotent(self):
        change = TokenChange("a", "b", 0, 1, 0, 1)
        roots = [
            node("moved_modified", "block", a=(5, 8), b=(20, 23), children=[node("modified", "s", a=(6, 6), b=(21, 21), tokens=[change])]),
            node("deleted", "gone", a=(1, 2)),
            node("modified", "broken", a=(9, 2)),
        ]
        self.assertEqual(project(roots), project(roots))


if __name__ == "__main__":
    unittest.main()
