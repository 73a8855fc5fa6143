# mobileshop/services/catalog.py
import locale
import unicodedata
from typing import Any, Dict, Iterable, List

from mobileshop.domain.errors import NotFound, ValidationError
from mobileshop.domain.models import CatalogFilter, Facets, Product, SortKey
from mobileshop.services.gateway import DataGateway
from mobileshop.utils.logging import get_logger

logger = get_logger(__name__)


def use_system_collation() -> bool:
    """
    Switches LC_COLLATE to the locale of the environment (LANG / LC_ALL),
    which Python leaves at "C" until asked. Returns False and keeps "C"
    when that locale is not installed.
    """
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Collation locale unavailable, names sort by code point: {e}")
        return False
    logger.info(f"Collation locale: {locale.setlocale(locale.LC_COLLATE)}")
    return True


def collation_key(name: str) -> tuple:
    """
    Name ordering key: accents and case are ignored first ("éclair" sits
    with "eclair", "apple" with "Apple"); the remaining ties go by
    LC_COLLATE. That is plain code point order unless use_system_collation()
    ran at startup.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()
    return locale.strxfrm(base), locale.strxfrm(name)


def parse_sort_key(sort: SortKey | str) -> SortKey:
    try:
        return SortKey(sort)
    except ValueError:
        raise ValidationError(f"Unknown sort key: {sort}", {"sort": sort}) from None


def filter_products(products: Iterable[Product], selection: CatalogFilter) -> List[Product]:
    """
    AND across facets, OR inside one facet; an empty facet does not restrict.
    """
    return [
        p
        for p in products
        if (not selection.in_stock_only or p.in_stock)
        and (not selection.brands or p.brand in selection.brands)
        and (not selection.conditions or p.condition in selection.conditions)
        and (not selection.categories or p.category in selection.categories)
    ]


def sort_products(products: Iterable[Product], sort: SortKey | str = SortKey.FEATURED) -> List[Product]:
    # sorted() is stable, reverse=True included: equal keys keep input order
    sort = parse_sort_key(sort)

    if sort is SortKey.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if sort is SortKey.PRICE_HIGH:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort is SortKey.NAME_ASC:
        return sorted(products, key=lambda p: collation_key(p.name))
    if sort is SortKey.NAME_DESC:
        return sorted(products, key=lambda p: collation_key(p.name), reverse=True)
    return list(products)


def filter_and_sort(products: Iterable[Product], selection: CatalogFilter) -> List[Product]:
    return sort_products(filter_products(products, selection), selection.sort)


def derive_facets(products: Iterable[Product]) -> Facets:
    """Distinct facet values of the whole catalog, in first-seen order."""
    products = list(products)
    return Facets(
        brands=list(dict.fromkeys(p.brand for p in products)),
        conditions=list(dict.fromkeys(p.condition for p in products)),
        categories=list(dict.fromkeys(p.category for p in products)),
    )


class CatalogService:
    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    def browse(self, selection: CatalogFilter | None = None) -> Dict[str, Any]:
        selection = selection or CatalogFilter()

        # always the full catalog: facets must not shrink with the selection
        products = self.gateway.query_products()
        shown = filter_and_sort(products, selection)

        logger.info(f"Catalog: {len(shown)} of {len(products)} products shown (sort={selection.sort.value})")

        return {
            "products": shown,
            "facets": derive_facets(products),
            "total": len(shown),
        }

    def get_product(self, product_id: str) -> Product:
        found = self.gateway.query_products({"id": product_id})
        if not found:
            raise NotFound("Product", product_id)
        return found[0]
