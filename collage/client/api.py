import logging
from typing import List, Optional
import httpx
from collage.client.cache import OptimisticImageCache

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, detail):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class CollageClient:
    """Async HTTP client for the collage API with an optimistic local cache."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        cache: Optional[OptimisticImageCache] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.token = token
        self.cache = cache if cache is not None else OptimisticImageCache()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = await self._http.request(method, url, headers=headers, **kwargs)
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail")
            except ValueError:
                detail = resp.text
            raise ApiError(resp.status_code, detail)
        return resp.json() if resp.content else None

    # --- auth ---------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> dict:
        data = await self._request("POST", "/api/auth/register", json={"name": name, "email": email, "password": password})
        return data["user"]

    async def login(self, email: str, password: str) -> str:
        data = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        return self.token

    # --- feed ---------------------------------------------------------------

    async def list_images(self, sort_by: str = "created_at_desc", filter_by: str = "all") -> List[dict]:
        return await self._request("GET", "/api/images", params={"sortBy": sort_by, "filterBy": filter_by})

    async def refresh(self, sort_by: str = "created_at_desc", filter_by: str = "all") -> List[dict]:
        """Fetch the full feed and reconcile it into the cache."""
        views = await self.list_images(sort_by, filter_by)
        self.cache.reconcile(views)
        return views

    # --- mutations ----------------------------------------------------------

    async def create_image(self, original_prompt: str, enhanced_prompt: str, image_data_uri: str) -> str:
        data = await self._request(
            "POST",
            "/api/images",
            json={
                "original_prompt": original_prompt,
                "enhanced_prompt": enhanced_prompt,
                "image_data_uri": image_data_uri,
            },
        )
        return data["imageId"]

    async def delete_image(self, image_id: str) -> None:
        await self._request("DELETE", f"/api/images/{image_id}")

    async def generate(self, prompt: str) -> dict:
        return await self._request("POST", "/api/generate", json={"prompt": prompt})

    # Method: rate()
    async def rate(self, image_id: str, rating_type: str) -> bool:
        """Rate an image optimistically.

        Returns False if the click was dropped because a rating for this
        image is already pending. On failure the cache is rolled back to the
        snapshot taken before the click and the error is re-raised.
        """
        if self.cache.begin_rating(image_id, rating_type) is None:
            return False
        try:
            await self._request("POST", f"/api/images/{image_id}/rate", json={"ratingType": rating_type})
        except Exception:
            self.cache.rollback_rating(image_id)
            raise
        self.cache.commit_rating(image_id)
        return True

    async def set_favorite(self, image_id: str, favorited: bool) -> bool:
        if self.cache.begin_favorite(image_id, favorited) is None:
            return False
        try:
            await self._request("POST" if favorited else "DELETE", f"/api/images/{image_id}/favorite")
        except Exception:
            self.cache.rollback_favorite(image_id)
            raise
        self.cache.commit_favorite(image_id)
        return True
