import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.api.dependencies import get_catalog_service
from storefront.domain.models import Item
from storefront.domain.ports import ItemNotFoundError, UpstreamFetchError
from storefront.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/productos", tags=["Productos"])

CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]


@router.get("", response_model=list[Item])
async def list_products(service: CatalogServiceDep) -> list[Item]:
    """
    Liefert die ersten Artikel mit Lagerbestand für die Startseite.
    """
    try:
        return await service.list_products()
    except UpstreamFetchError:
        logger.exception("Failed to list products")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudieron obtener los productos",
        )


@router.get("/{item_id}", response_model=Item)
async def get_product(service: CatalogServiceDep, item_id: str) -> Item:
    """
    Liefert einen Artikel mit Lagerbestand pro Variante.
    """
    try:
        return await service.get_item(item_id)
    except ItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UpstreamFetchError:
        logger.exception("Failed to fetch product %s", item_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudo obtener el producto",
        )
