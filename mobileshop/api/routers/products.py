# mobileshop/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, Query

from mobileshop.api.deps import get_gateway
from mobileshop.api.errors import to_http
from mobileshop.domain.errors import StorefrontError
from mobileshop.domain.models import CatalogFilter, Product, SortKey
from mobileshop.domain.schemas import CatalogOut
from mobileshop.services.catalog import CatalogService, parse_sort_key
from mobileshop.services.gateway import DataGateway

router = APIRouter(prefix="/products", tags=["products"])


def get_service(gateway: DataGateway):
    return CatalogService(gateway)


@router.get("", response_model=CatalogOut)
def browse_products(
    brand: List[str] = Query(default=[]),
    condition: List[str] = Query(default=[]),
    category: List[str] = Query(default=[]),
    in_stock: bool = Query(False),
    sort: str = Query(SortKey.FEATURED.value),
    gateway: DataGateway = Depends(get_gateway),
):
    """
    Catalog page: products matching every selected facet, sorted,
    plus the facet values of the whole catalog.
    """
    svc = get_service(gateway)
    try:
        # unknown sort key raises ValidationError
        selection = CatalogFilter(
            brands=set(brand),
            conditions=set(condition),
            categories=set(category),
            in_stock_only=in_stock,
            sort=parse_sort_key(sort),
        )
        return svc.browse(selection)
    except StorefrontError as e:
        raise to_http(e, "Failed to load products")


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, gateway: DataGateway = Depends(get_gateway)):
    svc = get_service(gateway)
    try:
        return svc.get_product(product_id)
    except StorefrontError as e:
        raise to_http(e, "Failed to load product")
