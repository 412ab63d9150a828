import unittest

from badgesmith.delivery.schemas.template import TemplateSource
from badgesmith.domain.errors import InvalidPathError, MissingGeometryError, TemplateError
from badgesmith.infrastructure.geometry.path_geometry import (
    build_template,
    format_subpaths,
    parse_svg_path,
    path_bounds,
    split_subpaths,
)
from badgesmith.infrastructure.templates.builtin import BADGE_SHAPES, fallback_source

RECT = "M0,0 L300,0 L300,100 L0,100 Z"


def source(inner=RECT, view_box="0 0 300 100", width_in=3.0, height_in=1.0, **kw):
    return TemplateSource(id="t", width_in=width_in, height_in=height_in, inner_path=inner, view_box=view_box, **kw)


class PathBoundsTests(unittest.TestCase):
    def test_rectangle_bounds(self):
        self.assertEqual(path_bounds(parse_svg_path("t", RECT)), (0.0, 0.0, 300.0, 100.0))

    def test_circle_bounds_come_from_arc_extents(self):
        path = parse_svg_path("t", "M0,50 A50,50 0 1,0 100,50 A50,50 0 1,0 0,50 Z")
        x, y, w, h = path_bounds(path)
        self.assertAlmostEqual(x, 0.0, places=6)
        self.assertAlmostEqual(y, 0.0, places=6)
        self.assertAlmostEqual(w, 100.0, places=6)
        self.assertAlmostEqual(h, 100.0, places=6)

    def test_cubic_bounds_use_curve_extrema_not_control_points(self):
        # Control points reach y=100 but the curve itself peaks at 75
        path = parse_svg_path("t", "M0,0 C0,100 100,100 100,0 Z")
        _, _, w, h = path_bounds(path)
        self.assertAlmostEqual(w, 100.0, places=6)
        self.assertAlmostEqual(h, 75.0, places=6)

    def test_jumps_split_subpaths(self):
        path = parse_svg_path("t", "M0,0 L10,0 L10,10 Z M20,20 L30,20 L30,30 Z")
        self.assertEqual(len(split_subpaths(path)), 2)


class BuildTemplateTests(unittest.TestCase):
    def test_view_box_is_scaled_to_physical_pixels(self):
        template = build_template(source(), dpi=96)
        self.assertEqual((template.width_px, template.height_px), (288, 96))
        box = template.design_box
        self.assertAlmostEqual(box.x, 0.0)
        self.assertAlmostEqual(box.y, 0.0)
        self.assertAlmostEqual(box.width, 288.0)
        self.assertAlmostEqual(box.height, 96.0)
        self.assertEqual(template.inner_path, "M0,0 L288,0 L288,96 L0,96 L0,0 Z")

    def test_view_box_origin_is_subtracted(self):
        template = build_template(source(inner="M100,50 L400,50 L400,150 L100,150 Z", view_box="100 50 300 100"))
        self.assertAlmostEqual(template.design_box.x, 0.0)
        self.assertAlmostEqual(template.design_box.y, 0.0)
        self.assertAlmostEqual(template.design_box.width, 288.0)

    def test_non_uniform_scale(self):
        template = build_template(source(inner="M0,0 L300,0 L300,300 L0,300 Z", view_box="0 0 300 300"))
        self.assertAlmostEqual(template.design_box.width, 288.0)
        self.assertAlmostEqual(template.design_box.height, 96.0)

    def test_without_view_box_paths_are_already_pixels(self):
        template = build_template(source(inner="M10,10 L110,10 L110,60 L10,60 Z", view_box=None))
        self.assertEqual(template.design_box.x, 10.0)
        self.assertEqual(template.design_box.width, 100.0)

    def test_inner_only_template_uses_inner_as_edge(self):
        template = build_template(source())
        self.assertIsNone(template.outline_path)
        self.assertEqual(template.edge_path, template.inner_path)

    def test_outline_is_converted_too(self):
        template = build_template(source(outline_path="M0,0 L300,0 L300,100 L0,100 Z"))
        self.assertEqual(template.outline_path, template.inner_path)

    def test_default_safe_inset(self):
        self.assertEqual(build_template(source(), dpi=96).safe_inset_px, 14)
        self.assertEqual(build_template(source(safe_inset_px=6)).safe_inset_px, 6)

    def test_build_is_deterministic(self):
        shape = BADGE_SHAPES["rect-1x3"]
        a = build_template(TemplateSource(id="rect-1x3", **shape))
        b = build_template(TemplateSource(id="rect-1x3", **shape))
        self.assertEqual(a, b)


class BuildTemplateErrorTests(unittest.TestCase):
    def test_missing_inner_path(self):
        with self.assertRaises(MissingGeometryError) as ctx:
            build_template(source(inner=None))
        self.assertEqual(ctx.exception.template_id, "t")

    def test_blank_inner_path_counts_as_missing(self):
        with self.assertRaises(MissingGeometryError):
            build_template(source(inner="   "))

    def test_unparsable_path(self):
        with self.assertRaises(InvalidPathError):
            build_template(source(inner="M0,0 L"))

    def test_path_without_segments(self):
        with self.assertRaises(InvalidPathError):
            build_template(source(inner="M10,10"))

    def test_moveto_that_draws_nothing(self):
        for inner in ("M0,0 L300,0 L300,100 L0,100 Z M20 20",
                      "M0,0 L300,0 L300,100 L0,100 Z m5,5 M10,10 L20,10 L20,20 Z"):
            with self.assertRaises(InvalidPathError) as ctx:
                build_template(source(inner=inner))
            self.assertIn("moveto", str(ctx.exception))

    def test_open_path(self):
        with self.assertRaises(InvalidPathError) as ctx:
            build_template(source(inner="M0,0 L300,0 L300,100"))
        self.assertIn("open", str(ctx.exception))

    def test_zero_area(self):
        with self.assertRaises(InvalidPathError):
            build_template(source(inner="M0,0 L300,0 Z"))

    def test_non_positive_size(self):
        with self.assertRaises(TemplateError):
            build_template(source(width_in=0))

    def test_geometry_errors_are_template_errors(self):
        self.assertTrue(issubclass(InvalidPathError, TemplateError))
        self.assertTrue(issubclass(MissingGeometryError, TemplateError))


class BuiltinCatalogueTests(unittest.TestCase):
    def test_every_builtin_shape_builds_inside_its_canvas(self):
        for template_id, shape in BADGE_SHAPES.items():
            with self.subTest(template_id=template_id):
                template = build_template(TemplateSource(id=template_id, **shape))
                self.assertEqual(template.width_px, round(shape["width_in"] * 96))
                self.assertEqual(template.height_px, round(shape["height_in"] * 96))
                box = template.design_box
                self.assertGreater(box.width, 0)
                self.assertGreater(box.height, 0)
                self.assertGreaterEqual(box.x, -1)
                self.assertGreaterEqual(box.y, -1)
                self.assertLessEqual(box.x + box.width, template.width_px + 1)
                self.assertLessEqual(box.y + box.height, template.height_px + 1)

    def test_fallback_rectangle(self):
        template = build_template(fallback_source())
        self.assertEqual((template.width_px, template.height_px), (288, 96))
        self.assertAlmostEqual(template.design_box.width, 288.0)
        self.assertIn("A", template.inner_path)

    def test_format_keeps_three_decimals(self):
        path = parse_svg_path("t", "M0.12345,0 L1,0 L1,1 Z")
        self.assertTrue(format_subpaths(split_subpaths(path)).startswith("M0.123,0 "))


if __name__ == "__main__":
    unittest.main()
