"""Source reader: discovers, parses and marks catalog XML input files.

The consumed marker in the file name is the only persisted record of
ingestion progress: a file is eligible for ingestion as long as its stem does
not end with the marker.
"""

import os
import xml.etree.ElementTree as ET
from pathlib import Path

from shared.catalog.errors import ParseError
from shared.catalog.models.ImportDocument import (
    ListItem,
    ListItemGroup,
    ProductGroup,
    RawImportDocument,
    TradeProduct,
)
from shared.helper.HelperConfig import HelperConfig


def _text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


class SourceReader:
    """Enumerates unconsumed catalog files below a root directory."""

    def __init__(self, helper_config: HelperConfig, source_dir: str | os.PathLike | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._source_dir = Path(source_dir or helper_config.get_string_val("SYNC_SOURCE_DIR", default="data/"))
        self._extension = helper_config.get_string_val("SYNC_FILE_EXTENSION", default=".xml").lower()
        self._marker = helper_config.get_string_val("SYNC_CONSUMED_MARKER", default="-done")
        if not self._extension.startswith("."):
            self._extension = f".{self._extension}"

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_source_dir(self) -> Path:
        return self._source_dir

    def is_catalog_file(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() == self._extension

    def is_consumed(self, path: Path) -> bool:
        return path.stem.endswith(self._marker)

    ##########################################
    ############### DISCOVERY ################
    ##########################################

    def discover_unprocessed(self) -> list[Path]:
        """Walk the source directory and collect every catalog file not yet consumed.

        Order follows the directory walk and is not guaranteed. A missing source
        directory yields an empty list.

        Returns:
            list[Path]: Files eligible for ingestion.
        """
        return [path for path in self._walk() if not self.is_consumed(path)]

    def discover_consumed(self) -> list[Path]:
        """Walk the source directory and collect every catalog file already marked consumed.

        Returns:
            list[Path]: Consumed files.
        """
        return [path for path in self._walk() if self.is_consumed(path)]

    def _walk(self) -> list[Path]:
        if not self._source_dir.is_dir():
            self.logging.warning("Source directory '%s' does not exist. Nothing to discover.", self._source_dir)
            return []

        found: list[Path] = []
        for dirpath, _dirnames, filenames in os.walk(self._source_dir):
            for filename in filenames:
                path = Path(dirpath) / filename
                if self.is_catalog_file(path):
                    found.append(path)
        return found

    ##########################################
    ################ PARSING #################
    ##########################################

    def parse(self, path: str | os.PathLike) -> RawImportDocument:
        """Parse one catalog XML file.

        Product groups and listing groups are read from the direct children of
        the root element. Unknown elements are ignored.

        Args:
            path (str | os.PathLike): The file to parse.

        Returns:
            RawImportDocument: All groups found in the file.

        Raises:
            ParseError: If the file cannot be read or is not well-formed XML.
        """
        path = Path(path)
        try:
            tree = ET.parse(path)
        except ET.ParseError as exc:
            raise ParseError(str(path), f"malformed XML ({exc})") from exc
        except OSError as exc:
            raise ParseError(str(path), f"unreadable file ({exc})") from exc

        root = tree.getroot()
        product_groups = [
            ProductGroup(
                name=(group.get("name") or "").strip(),
                products=[
                    TradeProduct(hs_code=_text(product, "hsCode"), description=_text(product, "productDesc"))
                    for product in group.findall("product")
                ],
            )
            for group in root.findall("productGroup")
        ]
        list_items = [
            ListItemGroup(
                type=(group.get("type") or "").strip(),
                items=[
                    ListItem(
                        image_url=_text(item, "ImageURL"),
                        item_name=_text(item, "ItemName"),
                        fob_price=_text(item, "FOBPrice"),
                    )
                    for item in group.findall("Item")
                ],
            )
            for group in root.findall("ListItems")
        ]

        document = RawImportDocument(source=str(path), product_groups=product_groups, list_items=list_items)
        self.logging.debug("Parsed '%s': %d item(s).", path, document.item_count())
        return document

    ##########################################
    ############### MARKING ##################
    ##########################################

    def mark_consumed(self, path: str | os.PathLike) -> Path:
        """Rename a fully ingested file so later discovery passes skip it.

        "name.xml" becomes "name-done.xml". If that name is taken, a numeric
        infix is added before the marker ("name.1-done.xml").

        Args:
            path (str | os.PathLike): The ingested file.

        Returns:
            Path: The new location of the file.
        """
        path = Path(path)
        target = self._free_target(path.parent, path.stem, self._marker + path.suffix)
        path.rename(target)
        self.logging.debug("Marked '%s' consumed as '%s'.", path, target.name)
        return target

    def unmark_consumed(self, path: str | os.PathLike) -> Path:
        """Strip the consumed marker so the file is discovered again.

        Args:
            path (str | os.PathLike): A consumed file.

        Returns:
            Path: The new location of the file.

        Raises:
            ValueError: If the file does not carry the consumed marker.
        """
        path = Path(path)
        if not self.is_consumed(path):
            raise ValueError(f"File '{path}' is not marked consumed.")
        stem = path.stem[: -len(self._marker)]
        target = self._free_target(path.parent, stem, path.suffix)
        path.rename(target)
        return target

    @staticmethod
    def _free_target(parent: Path, stem: str, tail: str) -> Path:
        target = parent / f"{stem}{tail}"
        counter = 1
        while target.exists():
            target = parent / f"{stem}.{counter}{tail}"
            counter += 1
        return target
