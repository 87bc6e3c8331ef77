"""Record normalizer: flattens both source schemas into CatalogRecords.

Trade product groups and marketplace listing groups fill disjoint subsets of
the canonical record; every field a source does not supply stays empty.
"""

from shared.catalog.errors import InvalidCodeError
from shared.catalog.models.CatalogRecord import CatalogRecord
from shared.catalog.models.ImportDocument import ListItem, RawImportDocument, TradeProduct

HS_SHORT_CODE_LENGTH = 6


def short_hs_code(code: str, group: str = "") -> str:
    """Return the six-character short form of an HS code.

    Raises:
        InvalidCodeError: If the code is shorter than six characters.
    """
    if len(code) < HS_SHORT_CODE_LENGTH:
        raise InvalidCodeError(code, group)
    return code[:HS_SHORT_CODE_LENGTH]


def normalize_trade_product(group_name: str, product: TradeProduct) -> CatalogRecord:
    code = product.hs_code.strip()
    return CatalogRecord(
        category=group_name,
        description=product.description,
        hs_code=short_hs_code(code, group_name),
        tariff_code=code,
    )


def normalize_list_item(listing_type: str, item: ListItem) -> CatalogRecord:
    return CatalogRecord(
        category=listing_type,
        description=item.item_name,
        picture_ref=item.image_url,
    )


def normalize(document: RawImportDocument) -> list[CatalogRecord]:
    """Map one parsed file to canonical records, trade groups first.

    The whole document is validated before anything is returned, so an invalid
    code never yields a partial record list.

    Args:
        document (RawImportDocument): The parsed input file.

    Returns:
        list[CatalogRecord]: Records without id or created_at.

    Raises:
        InvalidCodeError: If any trade item carries a code shorter than six characters.
    """
    records: list[CatalogRecord] = []
    for group in document.product_groups:
        for product in group.products:
            records.append(normalize_trade_product(group.name, product))
    for group in document.list_items:
        for item in group.items:
            records.append(normalize_list_item(group.type, item))
    return records
