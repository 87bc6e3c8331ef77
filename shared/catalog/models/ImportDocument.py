"""Transient models for one parsed catalog input file."""

from pydantic import BaseModel


class TradeProduct(BaseModel):
    """One <product> entry of a trade product group."""
    hs_code: str = ""
    description: str = ""


class ProductGroup(BaseModel):
    """A <productGroup name="..."> element."""
    name: str = ""
    products: list[TradeProduct] = []


class ListItem(BaseModel):
    """One <Item> entry of a marketplace listing group."""
    image_url: str = ""
    item_name: str = ""
    fob_price: str = ""


class ListItemGroup(BaseModel):
    """A <ListItems type="..."> element."""
    type: str = ""
    items: list[ListItem] = []


class RawImportDocument(BaseModel):
    """
    Everything extracted from one input file, before normalization.

    Never persisted as-is.
    """
    source: str
    product_groups: list[ProductGroup] = []
    list_items: list[ListItemGroup] = []

    def item_count(self) -> int:
        return sum(len(g.products) for g in self.product_groups) + sum(len(g.items) for g in self.list_items)
