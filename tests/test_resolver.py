import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from astdiff.change_tree import ChangeNode, LineRange
from astdiff.presentation import block_badge, location_text, marker_text
from astdiff.projector import ProjectedAnnotation
from astdiff.resolver import BlockAnnotation, ResolvedLine, build_badge_index, build_block_index, map_line, resolve


def block(kind, a=None, b=None, identifier="greet", score=0.0):
    return ChangeNode(
        change_kind=kind,
        identifier=identifier,
        block_type="function",
        similarity_score=score,
        range_a=LineRange(*a) if a else None,
        range_b=LineRange(*b) if b else None,
    )


class TestResolve(unittest.TestCase):
    def test_statement_kind_styles_the_line(self):
        root = block("moved_modified", a=(5, 9), b=(1, 5))
        owner = BlockAnnotation(node=root, side="a", span=LineRange(5, 9))
        statement = ProjectedAnnotation(kind="modified", description="changed", span=LineRange(6, 6))
        resolved = resolve(6, owner, statement)
        self.assertEqual(resolved.style_kind, "modified")
        self.assertIsNone(resolved.badge)
        self.assertIsNone(resolved.counterpart_line)
        self.assertIsNone(resolved.marker)

    def test_block_badge_shows_on_first_line_only(self):
        root = block("deleted", a=(11, 13), identifier="unused")
        owner = BlockAnnotation(node=root, side="a", span=LineRange(11, 13))
        statement = ProjectedAnnotation(kind="deleted", description="gone", span=LineRange(11, 13))
        first = resolve(11, owner, statement)
        later = resolve(12, owner, statement)
        self.assertIsNotNone(first.badge)
        self.assertEqual(first.badge.title, "DELETED function: unused at line 11-13")
        self.assertIsNone(later.badge)
        self.assertEqual(first.marker, "- DELETED")

    def test_moved_statement_keeps_its_own_counterpart(self):
        statement = ProjectedAnnotation(
            kind="moved",
            description="moved",
            counterpart_line=7,
            span=LineRange(1, 3),
            counterpart_span=LineRange(7, 9),
        )
        resolved = resolve(1, None, statement)
        self.assertEqual(resolved.counterpart_line, 7)
        self.assertEqual(resolved.marker, "<> MOVED -> 7")

    def test_moved_statement_maps_counterpart_by_offset(self):
        statement = ProjectedAnnotation(
            kind="moved_modified",
            description="moved",
            span=LineRange(5, 8),
            counterpart_span=LineRange(20, 23),
        )
        resolved = resolve(7, None, statement)
        self.assertEqual(resolved.style_kind, "moved_modified")
        self.assertEqual(resolved.counterpart_line, 22)
        self.assertIsNone(resolved.marker)

    def test_block_only_line_uses_block_kind_and_mapping(self):
        root = block("moved", a=(1, 3), b=(7, 9), identifier="add", score=100.0)
        owner = BlockAnnotation(node=root, side="a", span=LineRange(1, 3))
        resolved = resolve(2, owner)
        self.assertEqual(resolved.style_kind, "moved")
        self.assertEqual(resolved.counterpart_line, 8)
        self.assertIsNone(resolved.badge)

    def test_unannotated_line_resolves_to_nothing(self):
        self.assertEqual(resolve(4), ResolvedLine())

    def test_added_marker(self):
        statement = ProjectedAnnotation(kind="added", description="new", span=LineRange(11, 13))
        self.assertEqual(resolve(12, None, statement).marker, "+ ADDED")


class TestBlockIndex(unittest.TestCase):
    def test_structural_root_overrides_earlier_root(self):
        modified = block("modified", a=(1, 10), b=(1, 10), identifier="outer")
        deleted = block("deleted", a=(4, 5), identifier="inner")
        for roots in ([modified, deleted], [deleted, modified]):
            with self.subTest(order=[root.identifier for root in roots]):
                index = build_block_index(roots, "a")
                self.assertEqual(index[4].node.identifier, "inner")
                self.assertEqual(index[1].node.identifier, "outer")

    def test_first_root_wins_among_equals(self):
        first = block("modified", a=(1, 3), b=(1, 3), identifier="first")
        second = block("moved", a=(2, 4), b=(8, 10), identifier="second")
        index = build_block_index([first, second], "a")
        self.assertEqual(index[2].node.identifier, "first")
        self.assertEqual(index[4].node.identifier, "second")

    def test_skips_roots_without_lines_on_side(self):
        added = block("added", b=(3, 4), identifier="new")
        self.assertEqual(build_block_index([added], "a"), {})
        self.assertEqual(sorted(build_block_index([added], "b")), [3, 4])

    def test_badge_index_keeps_roots_that_lost_their_first_line(self):
        modified = block("modified", a=(1, 10), b=(1, 10), identifier="outer")
        deleted = block("deleted", a=(1, 3), identifier="inner")
        blocks = build_block_index([modified, deleted], "a")
        badges = build_badge_index([modified, deleted], "a")
        self.assertEqual(blocks[1].node.identifier, "inner")
        self.assertEqual([item.node.identifier for item in badges[1]], ["outer", "inner"])

        resolved = resolve(1, blocks[1], None, badges[1])
        self.assertEqual(resolved.style_kind, "deleted")
        self.assertEqual([badge.identifier for badge in resolved.badges], ["outer", "inner"])
        self.assertEqual(resolved.badge.identifier, "outer")
        self.assertEqual(resolve(2, blocks[2], None, badges.get(2, ())).badges, ())

    def test_counterpart_span_falls_back_to_legacy_line(self):
        node = ChangeNode(change_kind="moved", identifier="x", range_a=LineRange(2, 3), line_b=9)
        owner = BlockAnnotation(node=node, side="a", span=LineRange(2, 3))
        self.assertEqual(owner.counterpart_span, LineRange(9, 9))


class TestHelpers(unittest.TestCase):
    def test_map_line_clamps_to_counterpart_end(self):
        self.assertEqual(map_line(5, LineRange(1, 5), LineRange(10, 11)), 11)
        self.assertEqual(map_line(1, LineRange(1, 5), LineRange(10, 11)), 10)
        self.assertIsNone(map_line(1, LineRange(1, 5), None))

    def test_location_text(self):
        self.assertEqual(location_text(block("moved", a=(1, 3), b=(7, 9))), " (1-3 -> 7-9)")
        self.assertEqual(location_text(block("added", b=(11, 13))), " at line 11-13")
        self.assertEqual(location_text(block("modified", a=(2, 2), b=(2, 2))), " at lines 2-2")

    def test_badge_similarity_only_when_informative(self):
        self.assertEqual(block_badge(block("moved_modified", a=(5, 9), b=(1, 5), score=92.5)).similarity, 92.5)
        self.assertIsNone(block_badge(block("moved", a=(1, 3), b=(7, 9), score=100.0)).similarity)
        self.assertIsNone(block_badge(block("deleted", a=(1, 3))).similarity)

    def test_marker_text(self):
        self.assertEqual(marker_text("moved_modified", 20), "<> MOVED+MODIFIED -> 20")
        self.assertEqual(marker_text("deleted", None), "- DELETED")
        self.assertIsNone(marker_text("modified", None))


if __name__ == "__main__":
    unittest.main()
