"""Wildcard catalog with a static fallback.

The remote wildcard_catalog table is the source of truth. When it is empty
or unreachable, the six FALLBACK_WILDCARDS below are served instead.
"""

import random
from typing import Optional

from src.models.models import Intensity, WildcardCatalogEntry
from src.utils.errors import PersistenceError
from src.utils.logger import logger

FALLBACK_WILDCARDS: tuple[WildcardCatalogEntry, ...] = (
    WildcardCatalogEntry(
        id="1",
        name="Fish Sauce",
        category="Umami Boosters",
        flavor_profile=["umami", "salty", "funky"],
        pairs_with=["beef", "tomatoes", "caramel", "citrus"],
        description="Southeast Asian fermented fish condiment that adds deep umami without tasting fishy",
        usage_tips="Start with 1/2 tsp, add more to taste. Works great in non-Asian dishes like bolognese or Caesar dressing.",
        intensity=Intensity.BOLD,
    ),
    WildcardCatalogEntry(
        id="2",
        name="Miso Paste",
        category="Umami Boosters",
        flavor_profile=["umami", "sweet", "salty"],
        pairs_with=["butter", "chocolate", "caramel", "mushrooms"],
        description="Fermented soybean paste that adds depth and complexity to both savory and sweet dishes",
        usage_tips="White miso is milder, red miso is stronger. Try it in caramel or chocolate desserts.",
        intensity=Intensity.MEDIUM,
    ),
    WildcardCatalogEntry(
        id="3",
        name="Espresso Powder",
        category="Aromatic Additions",
        flavor_profile=["bitter", "roasted", "complex"],
        pairs_with=["chocolate", "beef", "chili", "vanilla"],
        description="Concentrated coffee flavor that enhances chocolate and adds depth to savory dishes",
        usage_tips="1/4 tsp in chili or beef stew adds complexity without coffee flavor. Perfect in brownies.",
        intensity=Intensity.MEDIUM,
    ),
    WildcardCatalogEntry(
        id="4",
        name="Tahini",
        category="Textural Elements",
        flavor_profile=["nutty", "bitter", "creamy"],
        pairs_with=["honey", "chocolate", "citrus", "greens"],
        description="Sesame seed paste that adds creamy nuttiness to both savory and sweet applications",
        usage_tips="Drizzle on salads, blend into smoothies, or swirl into brownies before baking.",
        intensity=Intensity.MEDIUM,
    ),
    WildcardCatalogEntry(
        id="5",
        name="Apple Cider Vinegar",
        category="Acidic Notes",
        flavor_profile=["tart", "fruity", "bright"],
        pairs_with=["pork", "beans", "greens", "berries"],
        description="Fruity vinegar that brightens flavors and cuts through richness",
        usage_tips="Add a splash at the end of cooking to brighten stews, soups, and braises.",
        intensity=Intensity.SUBTLE,
    ),
    WildcardCatalogEntry(
        id="6",
        name="Gochujang",
        category="Heat & Spice",
        flavor_profile=["spicy", "sweet", "umami"],
        pairs_with=["mayo", "honey", "beef", "eggs"],
        description="Korean fermented chili paste with sweet heat and deep umami notes",
        usage_tips="Mix with mayo for spicy aioli, glaze on roasted vegetables, or stir into mac and cheese.",
        intensity=Intensity.BOLD,
    ),
)


class WildcardCatalog:
    """Catalog access for the wildcard browsing screen.

    Args:
        store: Object with an async ``fetch_wildcard_catalog()`` (SupabaseRecipeStore),
            or None to always serve the fallback set.
    """

    def __init__(self, store=None) -> None:
        self.store = store
        self._entries: Optional[list[WildcardCatalogEntry]] = None
        self.using_fallback = False

    async def get_catalog(self, refresh: bool = False) -> list[WildcardCatalogEntry]:
        """Return the remote catalog, or the static fallback if it is empty or unreachable.

        Only a remote result is cached; while the fallback is served every call
        asks the store again. Callers get their own list.
        """
        if self._entries is not None and not refresh and not (self.using_fallback and self.store is not None):
            return list(self._entries)

        entries: list[WildcardCatalogEntry] = []
        if self.store is not None:
            try:
                entries = await self.store.fetch_wildcard_catalog()
            except PersistenceError as e:
                logger.warning(f"Wildcard catalog unavailable, using fallback: {e}")

        self.using_fallback = not entries
        self._entries = list(entries) if entries else list(FALLBACK_WILDCARDS)
        return list(self._entries)

    async def by_category(self) -> dict[str, list[WildcardCatalogEntry]]:
        grouped: dict[str, list[WildcardCatalogEntry]] = {}
        for entry in await self.get_catalog():
            grouped.setdefault(entry.category, []).append(entry)
        return grouped

    async def random_entry(self, rng: Optional[random.Random] = None) -> Optional[WildcardCatalogEntry]:
        entries = await self.get_catalog()
        if not entries:
            return None
        return (rng or random).choice(entries)

    async def search(self, query: str) -> list[WildcardCatalogEntry]:
        """Case-insensitive match on name or description."""
        needle = query.strip().lower()
        entries = await self.get_catalog()
        if not needle:
            return entries
        return [entry for entry in entries if needle in entry.name.lower() or needle in entry.description.lower()]
