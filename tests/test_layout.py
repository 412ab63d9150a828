import unittest

from badgesmith.delivery.schemas.badge import Badge, BadgeLine, new_badge
from badgesmith.domain.errors import LineLimitError
from badgesmith.domain.layout import (
    add_line,
    center_lines,
    ensure_initial_layout,
    needs_initial_layout,
    remove_line,
    update_line,
)
from badgesmith.domain.normalizer import resolve_position

from badge_fixtures import BOX_1X3, make_badge


class CenterLinesTests(unittest.TestCase):
    def test_default_lines_stack_inside_the_clamp_band(self):
        lines = center_lines(new_badge().lines, BOX_1X3)
        y1 = resolve_position(lines[0], BOX_1X3)[1]
        y2 = resolve_position(lines[1], BOX_1X3)[1]
        self.assertLess(y1, y2)
        for y in (y1, y2):
            self.assertGreater(y, 9.6)
            self.assertLess(y, 86.4)
        # sizes 19 and 14 px: block of 39.6 px starting at 28.2
        self.assertAlmostEqual(y1, 37.7)
        self.assertAlmostEqual(y2, 58.0)

    def test_is_idempotent(self):
        once = center_lines(new_badge().lines, BOX_1X3)
        self.assertEqual(center_lines(once, BOX_1X3), once)

    def test_only_positions_change(self):
        original = make_badge("a", "b", "c").lines
        centered = center_lines(original, BOX_1X3)
        self.assertEqual([l.size_norm for l in centered], [l.size_norm for l in original])
        self.assertEqual([l.text for l in centered], ["a", "b", "c"])

    def test_horizontal_position_is_kept(self):
        lines = [BadgeLine(text="a", x_norm=0.2, size_norm=0.1), BadgeLine(text="b", x=72, size_norm=0.1),
                 BadgeLine(text="c", size_norm=0.1)]
        centered = center_lines(lines, BOX_1X3)
        self.assertEqual([l.x_norm for l in centered], [0.2, 0.25, 0.5])
        self.assertIsNone(centered[1].x)

    def test_oversized_block_is_clamped(self):
        lines = [BadgeLine(text=str(i), size_norm=0.5) for i in range(4)]
        centered = center_lines(lines, BOX_1X3)
        self.assertEqual(centered[0].y_norm, 0.1)
        self.assertEqual(centered[-1].y_norm, 0.9)

    def test_single_line_sits_just_above_center(self):
        line = center_lines([BadgeLine(text="a", size_norm=0.25)], BOX_1X3)[0]
        # 24 px glyph on a 28.8 px pitch
        self.assertAlmostEqual(line.y_norm, (48 - 28.8 / 2 + 12) / 96)


class InitialLayoutTests(unittest.TestCase):
    def test_sentinel_lines_need_layout(self):
        self.assertTrue(needs_initial_layout(new_badge().lines))
        self.assertTrue(needs_initial_layout([BadgeLine(text="a")]))
        self.assertFalse(needs_initial_layout([BadgeLine(text="a", y_norm=0.3), BadgeLine(text="b", y_norm=0.5)]))

    def test_ensure_initial_layout_runs_once(self):
        badge = ensure_initial_layout(new_badge(), BOX_1X3)
        self.assertFalse(needs_initial_layout(badge.lines))
        self.assertIs(ensure_initial_layout(badge, BOX_1X3), badge)


class EditingTests(unittest.TestCase):
    def setUp(self):
        self.badge = ensure_initial_layout(new_badge(), BOX_1X3)

    def test_add_line_recenters(self):
        badge = add_line(self.badge, BOX_1X3, "Company")
        self.assertEqual([l.id for l in badge.lines], ["line-1", "line-2", "line-3"])
        self.assertEqual(badge.lines[2].text, "Company")
        self.assertEqual(badge.lines, center_lines(badge.lines, BOX_1X3))
        self.assertLess(badge.lines[0].y_norm, self.badge.lines[0].y_norm)

    def test_add_line_respects_the_limit(self):
        badge = add_line(add_line(self.badge, BOX_1X3), BOX_1X3)
        with self.assertRaises(LineLimitError):
            add_line(badge, BOX_1X3)

    def test_add_line_keeps_ids_unique(self):
        badge = Badge(lines=[BadgeLine(id="line-2", text="a")])
        ids = [l.id for l in add_line(badge, BOX_1X3).lines]
        self.assertEqual(len(ids), len(set(ids)))

    def test_remove_line(self):
        badge = remove_line(self.badge, 0, BOX_1X3)
        self.assertEqual([l.text for l in badge.lines], ["Title"])
        with self.assertRaises(LineLimitError):
            remove_line(badge, 0, BOX_1X3)
        with self.assertRaises(IndexError):
            remove_line(self.badge, 5, BOX_1X3)

    def test_text_edit_keeps_positions(self):
        badge = update_line(self.badge, 0, BOX_1X3, text="Dr. Ada")
        self.assertEqual(badge.lines[0].text, "Dr. Ada")
        self.assertEqual([l.y_norm for l in badge.lines], [l.y_norm for l in self.badge.lines])

    def test_size_edit_recenters(self):
        badge = update_line(self.badge, 0, BOX_1X3, size_norm=0.3)
        self.assertEqual(badge.lines[0].size_norm, 0.3)
        self.assertNotEqual(badge.lines[0].y_norm, self.badge.lines[0].y_norm)
        self.assertEqual(badge.lines, center_lines(badge.lines, BOX_1X3))

    def test_edits_are_validated(self):
        badge = update_line(self.badge, 1, BOX_1X3, color="blue", size_norm=9)
        self.assertEqual(badge.lines[1].color, "#0000FF")
        self.assertEqual(badge.lines[1].size_norm, 0.5)

    def test_original_badge_is_untouched(self):
        before = self.badge.model_dump()
        update_line(self.badge, 0, BOX_1X3, size_norm=0.4)
        add_line(self.badge, BOX_1X3)
        self.assertEqual(self.badge.model_dump(), before)


if __name__ == "__main__":
    unittest.main()
