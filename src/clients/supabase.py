"""Persistence collaborator: Supabase tables used by the save action.

Built on the async supabase client. Tables:
recipes, ingredients, instructions, saved_recipes, wildcard_catalog.

The pipeline never calls this module. Only the wizard's save action and the
wildcard catalog do, after a draft exists.
"""

from typing import Any, Optional

import httpx
from supabase import AsyncClient, PostgrestAPIError, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from src.models.models import (
    IngredientDraft,
    InstructionDraft,
    PersistedRecipe,
    RecipeDraft,
    WildcardCatalogEntry,
)
from src.utils.config import config
from src.utils.errors import PersistenceError
from src.utils.logger import logger


class SupabaseRecipeStore:
    """Recipe, bookmark and catalog access through the Supabase client.

    Args:
        url: Project URL (https://<project>.supabase.co). Default: config.SUPABASE_URL.
        anon_key: Public anon key. Default: config.SUPABASE_ANON_KEY.
        access_token: JWT of the signed-in user, if any. Anonymous otherwise.
        user_id: Id of the signed-in user; required for bookmarks.
        client: Ready AsyncClient to use instead of creating one on first call.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        access_token: Optional[str] = None,
        user_id: Optional[str] = None,
        timeout_seconds: int = 15,
        client: Optional[AsyncClient] = None,
    ) -> None:
        self.url = (url or config.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key or config.SUPABASE_ANON_KEY
        self.access_token = access_token or config.SUPABASE_ACCESS_TOKEN
        self.user_id = user_id or config.SUPABASE_USER_ID
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def is_signed_in(self) -> bool:
        return bool(self.user_id)

    async def _get_client(self) -> AsyncClient:
        if self._client is not None:
            return self._client
        if not (self.url and self.anon_key):
            raise PersistenceError(
                "Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)",
                user_message="Supabase is not configured. Please add SUPABASE_URL and SUPABASE_ANON_KEY to your .env file.",
            )

        options = AsyncClientOptions(postgrest_client_timeout=self.timeout_seconds)
        client = await acreate_client(self.url, self.anon_key, options=options)
        if self.access_token:
            # Row level security sees the user's JWT instead of the anon key
            client.postgrest.auth(self.access_token)
        self._client = client
        return client

    async def _table(self, name: str):
        client = await self._get_client()
        return client.table(name)

    async def _execute(self, query, action: str) -> list[dict[str, Any]]:
        """Run a built query and return its rows.

        Raises:
            PersistenceError: On API errors or transport failures.
        """
        try:
            response = await query.execute()
        except PostgrestAPIError as e:
            logger.warning(f"Supabase {action} failed: {e.message} (code {e.code})")
            raise PersistenceError(f"{action} failed: {e.message}") from e
        except httpx.HTTPError as e:
            logger.warning(f"Supabase {action} failed: {e}")
            raise PersistenceError(f"{action} failed: {e}") from e
        return response.data or []

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    async def create_recipe(self, draft: RecipeDraft) -> PersistedRecipe:
        """Insert the recipe row, then its ingredient and instruction rows.

        Empty lists are skipped. The draft is stored as handed over; callers
        run the savability gate before calling this. If a child insert fails
        the recipe row is deleted again so a retry does not leave duplicates.
        """
        row = draft.model_dump(mode="json", exclude={"ingredients", "instructions", "source_url"})
        row.update({"user_id": self.user_id, "is_anonymous": not self.is_signed_in})

        created = await self._execute((await self._table("recipes")).insert(row), "insert recipe")
        if not created:
            raise PersistenceError("Recipe insert returned no row")
        recipe = PersistedRecipe.model_validate(created[0])

        try:
            if draft.ingredients:
                rows = [{"recipe_id": recipe.id, **ing.model_dump(mode="json")} for ing in draft.ingredients]
                await self._execute((await self._table("ingredients")).insert(rows), "insert ingredients")
            if draft.instructions:
                rows = [{"recipe_id": recipe.id, **inst.model_dump(mode="json")} for inst in draft.instructions]
                await self._execute((await self._table("instructions")).insert(rows), "insert instructions")
        except PersistenceError:
            await self._discard_recipe(recipe.id)
            raise

        logger.info(
            f"Saved recipe {recipe.id} '{recipe.title}' "
            f"({len(draft.ingredients)} ingredients, {len(draft.instructions)} steps)"
        )
        return recipe.model_copy(update={"ingredients": draft.ingredients, "instructions": draft.instructions})

    async def _discard_recipe(self, recipe_id: str) -> None:
        """Best-effort removal of a half-saved recipe row."""
        try:
            await self.delete_recipe(recipe_id)
            logger.info(f"Removed partially saved recipe {recipe_id}")
        except PersistenceError as e:
            logger.error(f"Could not remove partially saved recipe {recipe_id}: {e}")

    async def get_recipe(self, recipe_id: str) -> Optional[PersistedRecipe]:
        rows = await self._execute((await self._table("recipes")).select("*").eq("id", recipe_id), "get recipe")
        if not rows:
            return None

        ingredients = await self._execute(
            (await self._table("ingredients")).select("*").eq("recipe_id", recipe_id).order("order_index"),
            "get ingredients",
        )
        instructions = await self._execute(
            (await self._table("instructions")).select("*").eq("recipe_id", recipe_id).order("step_number"),
            "get instructions",
        )
        recipe = PersistedRecipe.model_validate(rows[0])
        return recipe.model_copy(
            update={
                "ingredients": [IngredientDraft.model_validate(row) for row in ingredients],
                "instructions": [InstructionDraft.model_validate(row) for row in instructions],
            }
        )

    async def list_public_recipes(
        self, cuisine: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> list[PersistedRecipe]:
        query = (
            (await self._table("recipes"))
            .select("*")
            .eq("is_public", True)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
        )
        if cuisine:
            query = query.eq("cuisine", cuisine)
        rows = await self._execute(query, "list recipes")
        return [PersistedRecipe.model_validate(row) for row in rows]

    async def delete_recipe(self, recipe_id: str) -> None:
        await self._execute((await self._table("recipes")).delete().eq("id", recipe_id), "delete recipe")

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def _require_user(self, action: str) -> str:
        if not self.user_id:
            message = f"Must be logged in to {action} recipes"
            raise PersistenceError(message, user_message=message)
        return self.user_id

    async def save_bookmark(self, recipe_id: str) -> None:
        user_id = self._require_user("save")
        await self._execute(
            (await self._table("saved_recipes")).insert({"user_id": user_id, "recipe_id": recipe_id}),
            "save bookmark",
        )

    async def remove_bookmark(self, recipe_id: str) -> None:
        user_id = self._require_user("unsave")
        await self._execute(
            (await self._table("saved_recipes")).delete().eq("user_id", user_id).eq("recipe_id", recipe_id),
            "remove bookmark",
        )

    async def is_bookmarked(self, recipe_id: str) -> bool:
        if not self.user_id:
            return False
        rows = await self._execute(
            (await self._table("saved_recipes")).select("id").eq("user_id", self.user_id).eq("recipe_id", recipe_id),
            "check bookmark",
        )
        return bool(rows)

    # ------------------------------------------------------------------
    # Wildcard catalog
    # ------------------------------------------------------------------

    async def fetch_wildcard_catalog(self) -> list[WildcardCatalogEntry]:
        rows = await self._execute(
            (await self._table("wildcard_catalog")).select("*").order("name"), "fetch wildcard catalog"
        )
        return [WildcardCatalogEntry.model_validate(row) for row in rows]
