import asyncio
import json
import os
import tempfile
import unittest
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

from badgesmith.delivery.schemas.badge import Badge, BadgeLine
from badgesmith.delivery.schemas.template import TemplateSource
from badgesmith.domain.errors import (
    BadgeEngineError,
    InvalidPathError,
    TemplateFetchError,
    TemplateNotFoundError,
)
from badgesmith.domain.template_resolver import TemplateResolver
from badgesmith.infrastructure.geometry.path_geometry import build_template
from badgesmith.infrastructure.templates.builtin import BADGE_SHAPES, FALLBACK_TEMPLATE_ID, BuiltinTemplateSource
from badgesmith.infrastructure.templates.svg_source import ManifestTemplateSource, parse_template_svg

RECT = {"width_in": 3.0, "height_in": 1.0, "inner_path": "M0,0 L300,0 L300,100 L0,100 Z", "view_box": "0 0 300 100"}
TALL = {"width_in": 3.0, "height_in": 1.5, "inner_path": "M0,0 L300,0 L300,150 L0,150 Z", "view_box": "0 0 300 150"}
OPEN = {"width_in": 3.0, "height_in": 1.0, "inner_path": "M0,0 L300,0 L300,100", "view_box": "0 0 300 100"}


class FakeSource:
    def __init__(self, shapes, offline=()):
        self.shapes = shapes
        self.offline = set(offline)
        self.calls = Counter()

    async def list_ids(self):
        return list(self.shapes)

    async def fetch(self, template_id):
        self.calls[template_id] += 1
        await asyncio.sleep(0.01)
        if template_id in self.offline:
            raise TemplateFetchError(template_id, "source offline")
        shape = self.shapes.get(template_id)
        return None if shape is None else TemplateSource(id=template_id, **shape)


def badge_on(template_id):
    return Badge(template_id=template_id, lines=[BadgeLine(text="a")])


class TemplateResolverTests(unittest.IsolatedAsyncioTestCase):
    async def test_templates_are_cached(self):
        source = FakeSource({"rect-1x3": RECT})
        resolver = TemplateResolver([source])
        first = await resolver.get("rect-1x3")
        second = await resolver.get("rect-1x3")
        self.assertIs(first, second)
        self.assertEqual(source.calls["rect-1x3"], 1)
        self.assertEqual(resolver.cached_ids(), ["rect-1x3"])

    async def test_concurrent_requests_share_one_load(self):
        source = FakeSource({"rect-1x3": RECT})
        resolver = TemplateResolver([source])
        results = await asyncio.gather(*(resolver.get("rect-1x3") for _ in range(5)))
        self.assertEqual(source.calls["rect-1x3"], 1)
        self.assertTrue(all(r is results[0] for r in results))

    async def test_invalidate_and_reload(self):
        source = FakeSource({"rect-1x3": RECT, "tall": TALL})
        resolver = TemplateResolver([source])
        await resolver.get("rect-1x3")
        await resolver.get("tall")

        resolver.invalidate("rect-1x3")
        self.assertEqual(resolver.cached_ids(), ["tall"])
        await resolver.get("rect-1x3")
        self.assertEqual(source.calls["rect-1x3"], 2)

        await resolver.reload("tall")
        self.assertEqual(source.calls["tall"], 2)

        resolver.invalidate()
        self.assertEqual(resolver.cached_ids(), [])

    async def test_geometry_runs_in_the_executor(self):
        with ThreadPoolExecutor(max_workers=2) as executor:
            resolver = TemplateResolver([FakeSource({"rect-1x3": RECT})], executor=executor)
            template = await resolver.get("rect-1x3")
        self.assertEqual((template.width_px, template.height_px), (288, 96))

    async def test_unknown_template(self):
        resolver = TemplateResolver([FakeSource({"rect-1x3": RECT})])
        with self.assertRaises(TemplateNotFoundError):
            await resolver.get("nope")

    async def test_sources_are_consulted_in_order(self):
        override = FakeSource({"rect-1x3": TALL})
        resolver = TemplateResolver([override, FakeSource({"rect-1x3": RECT, "tall": TALL})])
        self.assertEqual((await resolver.get("rect-1x3")).height_px, 144)
        self.assertEqual((await resolver.get("tall")).height_px, 144)

    async def test_load_all_isolates_failures(self):
        resolver = TemplateResolver([FakeSource({"rect-1x3": RECT, "broken": OPEN, "tall": TALL})])
        templates, errors = await resolver.load_all()
        self.assertEqual(sorted(templates), ["rect-1x3", "tall"])
        self.assertEqual(list(errors), ["broken"])
        self.assertIn("open", errors["broken"])

    async def test_load_all_raises_when_nothing_loads(self):
        resolver = TemplateResolver([FakeSource({"broken": OPEN})])
        with self.assertRaises(BadgeEngineError):
            await resolver.load_all()


class ResolveForBadgeTests(unittest.IsolatedAsyncioTestCase):
    async def test_badge_template(self):
        resolver = TemplateResolver([FakeSource({"rect-1x3": RECT, "tall": TALL})])
        self.assertEqual((await resolver.resolve_for_badge(badge_on("tall"))).id, "tall")

    async def test_unknown_template_uses_the_default(self):
        resolver = TemplateResolver([FakeSource({"rect-1x3": RECT})], default_id="rect-1x3")
        self.assertEqual((await resolver.resolve_for_badge(badge_on("gone"))).id, "rect-1x3")

    async def test_unreachable_source_uses_the_fallback_rectangle(self):
        source = FakeSource({"rect-1x3": RECT, "remote": TALL}, offline={"rect-1x3", "remote"})
        resolver = TemplateResolver([source], default_id="rect-1x3")
        with self.assertLogs("badgesmith.domain.template_resolver", level="ERROR"):
            template = await resolver.resolve_for_badge(badge_on("remote"))
        self.assertEqual(template.id, FALLBACK_TEMPLATE_ID)
        self.assertEqual((template.width_px, template.height_px), (288, 96))
        with self.assertRaises(TemplateFetchError):
            await resolver.get("remote")

    async def test_fetch_failures_are_not_cached(self):
        source = FakeSource({"rect-1x3": RECT}, offline={"rect-1x3"})
        resolver = TemplateResolver([source], default_id="rect-1x3")
        await resolver.resolve_for_badge(badge_on("rect-1x3"))
        source.offline.clear()
        self.assertEqual((await resolver.resolve_for_badge(badge_on("rect-1x3"))).id, "rect-1x3")

    async def test_geometry_errors_are_not_masked(self):
        resolver = TemplateResolver([FakeSource({"rect-1x3": RECT, "broken": OPEN})])
        with self.assertRaises(InvalidPathError):
            await resolver.resolve_for_badge(badge_on("broken"))


class BuiltinSourceTests(unittest.IsolatedAsyncioTestCase):
    async def test_catalogue(self):
        source = BuiltinTemplateSource()
        ids = await source.list_ids()
        for template_id in ("rect-1x3", "rect-1_5x3", "house-1_5x3", "oval-1_5x3",
                            "square-1x3", "square-1_5x3", "fancy-1_5x3", "designer-1x3"):
            self.assertIn(template_id, ids)
        self.assertIsNone(await source.fetch("nope"))
        fetched = await source.fetch("oval-1_5x3")
        self.assertEqual(fetched.view_box.height, 1650)
        self.assertEqual(fetched.inner_path, BADGE_SHAPES["oval-1_5x3"]["inner_path"])

    async def test_builtin_templates_resolve(self):
        resolver = TemplateResolver([BuiltinTemplateSource()])
        templates, errors = await resolver.load_all()
        self.assertEqual(errors, {})
        self.assertEqual(len(templates), len(BADGE_SHAPES))


TEMPLATE_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 150">
  <g>
    <path id="Outline" d="M0,0 L300,0 L300,150 L0,150 Z" fill="none"/>
    <rect id="Inner" x="10" y="10" width="280" height="130"/>
  </g>
</svg>
"""


class SvgTemplateSourceTests(unittest.IsolatedAsyncioTestCase):
    def test_parse_extracts_inner_outline_and_view_box(self):
        source = parse_template_svg("t", TEMPLATE_SVG.encode("utf-8"), 3.0, 1.5, name="Test")
        self.assertEqual(source.outline_path, "M0,0 L300,0 L300,150 L0,150 Z")
        self.assertEqual(source.inner_path, "M10.0,10.0 H290.0 V140.0 H10.0 Z")
        self.assertEqual((source.view_box.width, source.view_box.height), (300, 150))
        self.assertEqual(source.name, "Test")

    def test_circle_and_ellipse_become_arcs(self):
        svg = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100"><circle id="inner" cx="50" cy="50" r="40"/></svg>'
        source = parse_template_svg("c", svg, 1.0, 1.0)
        self.assertTrue(source.inner_path.startswith("M10.0,50.0 A40.0,40.0"))

    def test_rounded_rect_keeps_its_corners(self):
        svg = ('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 100">'
               '<rect id="Inner" x="0" y="0" width="300" height="100" rx="25"/></svg>')
        source = parse_template_svg("r", svg, 3.0, 1.0)
        self.assertEqual(source.inner_path,
                         "M25.0,0.0 H275.0 A25.0,25.0 0 0,1 300.0,25.0 V75.0 A25.0,25.0 0 0,1 275.0,100.0 "
                         "H25.0 A25.0,25.0 0 0,1 0.0,75.0 V25.0 A25.0,25.0 0 0,1 25.0,0.0 Z")
        template = build_template(source)
        self.assertAlmostEqual(template.design_box.width, 288, places=3)
        self.assertAlmostEqual(template.design_box.height, 96, places=3)

    def test_oversized_radius_is_capped(self):
        svg = ('<svg xmlns="http://www.w3.org/2000/svg">'
               '<rect id="Inner" width="100" height="40" ry="50"/></svg>')
        source = parse_template_svg("r", svg, 1.0, 0.4)
        self.assertTrue(source.inner_path.startswith("M50.0,0.0 H50.0 A50.0,20.0 0 0,1 100.0,20.0"))

    def test_broken_document(self):
        with self.assertRaises(InvalidPathError):
            parse_template_svg("t", "<svg><path", 3.0, 1.0)

    def test_document_without_inner_shape(self):
        source = parse_template_svg("t", '<svg xmlns="http://www.w3.org/2000/svg"><path d="M0,0 Z"/></svg>', 3.0, 1.0)
        self.assertIsNone(source.inner_path)

    async def test_manifest_source(self):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "tall.svg"), "w", encoding="utf-8") as f:
                f.write(TEMPLATE_SVG)
            manifest = os.path.join(tmp, "manifest.json")
            with open(manifest, "w", encoding="utf-8") as f:
                json.dump({"version": 1, "templates": [
                    {"id": "tall", "name": "Tall", "widthInches": 3, "heightInches": 1.5, "svgFile": "tall.svg"},
                    {"id": "missing", "name": "Missing", "widthInches": 3, "heightInches": 1, "svgFile": "missing.svg"},
                ]}, f)

            source = ManifestTemplateSource(manifest, timeout=2, retries=0)
            self.assertEqual(await source.list_ids(), ["tall", "missing"])
            self.assertIsNone(await source.fetch("nope"))
            with self.assertRaises(TemplateFetchError):
                await source.fetch("missing")

            resolver = TemplateResolver([source])
            template = await resolver.get("tall")
            self.assertEqual((template.width_px, template.height_px), (288, 144))
            self.assertAlmostEqual(template.design_box.x, 9.6)
            self.assertAlmostEqual(template.design_box.width, 268.8)

    async def test_missing_manifest(self):
        source = ManifestTemplateSource("/nonexistent/manifest.json", timeout=1, retries=0)
        with self.assertRaises(TemplateFetchError):
            await source.list_ids()


if __name__ == "__main__":
    unittest.main()
