"""Picture policy applied to normalized records before they are persisted.

"reference" keeps the image URL as delivered by the source. "inline" downloads
the image and replaces the URL by a base64 data URI, so the store carries the
payload itself.
"""

import base64

import httpx

from shared.catalog.errors import PictureFetchError
from shared.catalog.models.CatalogRecord import CatalogRecord, INLINE_PICTURE_PREFIX
from shared.helper.HelperConfig import HelperConfig

PICTURE_MODES = ["reference", "inline"]


class PictureInliner:
    """Applies the configured picture representation to catalog records."""

    def __init__(self, helper_config: HelperConfig, mode: str | None = None) -> None:
        self.logging = helper_config.get_logger()
        self.mode = mode or helper_config.get_choice_val("SYNC_PICTURE_MODE", PICTURE_MODES, default="reference")
        if self.mode not in PICTURE_MODES:
            raise ValueError(f"Unsupported picture mode '{self.mode}'. Expected one of {PICTURE_MODES}.")
        self.timeout = helper_config.get_number_val("PICTURE_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP client. Only needed in inline mode."""
        if self.mode == "inline":
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_apply(self, record: CatalogRecord) -> CatalogRecord:
        """Return the record with its picture in the configured representation.

        Records without a picture, and pictures that are already inlined, pass unchanged.

        Raises:
            PictureFetchError: If the image cannot be downloaded in inline mode.
        """
        if self.mode == "reference" or not record.picture_ref or record.has_inline_picture():
            return record
        return record.model_copy(update={"picture_ref": await self.do_fetch_inline(record.picture_ref)})

    async def do_fetch_inline(self, url: str) -> str:
        """Download an image and encode it as a data URI.

        Args:
            url (str): Absolute image URL.

        Returns:
            str: "data:<mime>;base64,<payload>"

        Raises:
            PictureFetchError: If the client is not booted, the request fails or returns a non-2xx status.
        """
        if self._client is None:
            raise PictureFetchError("Picture client not initialised. Call boot() before fetching.")
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PictureFetchError(f"Could not fetch picture '{url}': {exc}") from exc

        mime = response.headers.get("content-type", "application/octet-stream").split(";")[0].strip()
        payload = base64.b64encode(response.content).decode("ascii")
        return f"{INLINE_PICTURE_PREFIX}{mime};base64,{payload}"
