# badgesmith/domain/template_resolver.py
import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from badgesmith.config.settings import settings
from badgesmith.delivery.schemas.badge import Badge
from badgesmith.delivery.schemas.template import Template, TemplateSource
from badgesmith.domain.errors import BadgeEngineError, TemplateFetchError, TemplateNotFoundError
from badgesmith.infrastructure.geometry.path_geometry import build_template
from badgesmith.infrastructure.templates.builtin import fallback_source

# --- LOGGER SETUP ---
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


class TemplateSourceProtocol(Protocol):
    async def list_ids(self) -> List[str]: ...

    async def fetch(self, template_id: str) -> Optional[TemplateSource]: ...


class TemplateResolver:
    """Lifetime-scoped cache of resolved templates.

    Each id is fetched and parsed at most once until it is invalidated;
    concurrent ``get`` calls for the same uncached id share one load. Path
    parsing runs in ``executor`` so large outlines do not stall the loop.
    """

    def __init__(self, sources: Sequence[TemplateSourceProtocol], executor: Optional[ThreadPoolExecutor] = None,
                 dpi: int = settings.DPI, default_id: str = settings.DEFAULT_TEMPLATE_ID):
        if not sources:
            raise ValueError("TemplateResolver needs at least one template source")
        self.sources = list(sources)
        self.executor = executor
        self.dpi = dpi
        self.default_id = default_id
        self._cache: Dict[str, Template] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._generation = 0
        self._fallback: Optional[Template] = None

    def cached_ids(self) -> List[str]:
        return sorted(self._cache)

    async def _fetch_source(self, template_id: str) -> TemplateSource:
        for source in self.sources:
            found = await source.fetch(template_id)
            if found is not None:
                return found
        raise TemplateNotFoundError(template_id, "not provided by any template source")

    async def _build(self, source: TemplateSource) -> Template:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, build_template, source, self.dpi)

    async def _load(self, template_id: str) -> Template:
        generation = self._generation
        start = time.perf_counter()
        source = await self._fetch_source(template_id)
        template = await self._build(source)
        if generation == self._generation:
            self._cache[template_id] = template
        logger.info(f"Template '{template_id}' resolved to {template.width_px}x{template.height_px}px "
                    f"in {time.perf_counter() - start:.3f}s.")
        return template

    async def get(self, template_id: str) -> Template:
        """Resolved template for ``template_id``.

        Raises TemplateNotFoundError, TemplateFetchError, or the geometry
        errors from ``build_template``.
        """
        cached = self._cache.get(template_id)
        if cached is not None:
            return cached
        task = self._inflight.get(template_id)
        if task is None:
            task = asyncio.ensure_future(self._load(template_id))
            self._inflight[template_id] = task
            task.add_done_callback(lambda t, tid=template_id: self._forget(tid, t))
        # One caller giving up must not cancel the load the others wait on
        return await asyncio.shield(task)

    def _forget(self, template_id: str, task: asyncio.Future):
        if self._inflight.get(template_id) is task:
            del self._inflight[template_id]
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Template '{template_id}' failed to load: {task.exception()}")

    async def fallback(self) -> Template:
        if self._fallback is None:
            self._fallback = await self._build(fallback_source())
        return self._fallback

    async def resolve_for_badge(self, badge: Badge) -> Template:
        """Template for ``badge``: its own, else the default, else the fallback rectangle.

        Missing or unreachable templates degrade; malformed geometry is raised.
        """
        for template_id in dict.fromkeys((badge.template_id, self.default_id)):
            try:
                return await self.get(template_id)
            except TemplateNotFoundError:
                logger.warning(f"Badge {badge.id}: template '{template_id}' does not exist.")
            except TemplateFetchError as e:
                logger.error(f"Badge {badge.id}: {e}")
        logger.warning(f"Badge {badge.id}: rendering on the fallback rectangle.")
        return await self.fallback()

    async def _all_ids(self, errors: Dict[str, str]) -> List[str]:
        ids: List[str] = []
        for source in self.sources:
            try:
                listed = await source.list_ids()
            except TemplateFetchError as e:
                errors[e.template_id] = str(e)
                continue
            ids.extend(i for i in listed if i not in ids)
        return ids

    async def load_all(self) -> Tuple[Dict[str, Template], Dict[str, str]]:
        """Resolve every template the sources list.

        A template that fails is reported in the error map and does not affect
        the others. Raises BadgeEngineError only when nothing could be loaded.
        """
        errors: Dict[str, str] = {}
        ids = await self._all_ids(errors)
        results = await asyncio.gather(*(self.get(i) for i in ids), return_exceptions=True)

        templates: Dict[str, Template] = {}
        for template_id, result in zip(ids, results):
            if isinstance(result, BadgeEngineError):
                errors[template_id] = str(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                templates[template_id] = result

        logger.info(f"Loaded {len(templates)}/{len(ids)} templates ({len(errors)} errors).")
        if not templates and errors:
            raise BadgeEngineError(f"No template could be loaded: {errors}")
        return templates, errors

    def invalidate(self, template_id: Optional[str] = None):
        """Drop one cached template, or all of them; in-flight loads will not repopulate."""
        self._generation += 1
        if template_id is None:
            self._cache.clear()
            self._inflight.clear()
        else:
            self._cache.pop(template_id, None)
            self._inflight.pop(template_id, None)
        logger.info(f"Template cache invalidated ({template_id or 'all'}).")

    async def reload(self, template_id: str) -> Template:
        self.invalidate(template_id)
        return await self.get(template_id)
