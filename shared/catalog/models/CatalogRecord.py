"""Canonical catalog record and the subset of it registered with the index."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

INLINE_PICTURE_PREFIX = "data:"

# text attributes shared by the store row, the index document and the API response
TEXT_FIELDS = (
    "category",
    "description",
    "picture_ref",
    "hs_code",
    "tariff_code",
    "country",
    "explanation_sheet",
    "vote",
)


class CatalogRecord(BaseModel):
    """
    A single catalog entry as persisted in the durable store.

    id and created_at are None until the record has been persisted. All text
    attributes default to "" so that absent values are never null.

    picture_ref is either a URL (reference) or a "data:<mime>;base64,..." URI
    (inlined payload). The data URI prefix tags which of the two it is.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int | None = None
    created_at: datetime | None = None
    category: str = ""
    description: str = ""
    picture_ref: str = ""
    hs_code: str = ""
    tariff_code: str = ""
    country: str = ""
    explanation_sheet: str = ""
    vote: str = ""

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    def has_inline_picture(self) -> bool:
        return self.picture_ref.startswith(INLINE_PICTURE_PREFIX)

    def document_id(self) -> str:
        """
        Returns the identifier shared with the index document.

        Raises:
            ValueError: If the record has not been persisted yet.
        """
        if self.id is None:
            raise ValueError("Record has no identifier yet; persist it before indexing.")
        return str(self.id)


class IndexDocument(BaseModel):
    """
    The fields of a CatalogRecord registered with the index engine, keyed by the record id.

    Inlined picture payloads are kept out of the index; picture references are kept.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    created_at: datetime | None = None
    category: str = ""
    description: str = ""
    picture_ref: str = ""
    hs_code: str = ""
    tariff_code: str = ""
    country: str = ""
    explanation_sheet: str = ""
    vote: str = ""

    @classmethod
    def from_record(cls, record: CatalogRecord) -> "IndexDocument":
        if record.id is None:
            raise ValueError("Cannot build an index document for an unpersisted record.")
        data = record.model_dump(exclude={"picture_ref"})
        picture_ref = "" if record.has_inline_picture() else record.picture_ref
        return cls(picture_ref=picture_ref, **data)

    def to_record(self) -> CatalogRecord:
        return CatalogRecord(**self.model_dump())

    def to_source(self) -> dict:
        """Serialise the document body as written to the index."""
        return self.model_dump(mode="json", by_alias=True)
