import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.api.dependencies import get_catalog_service
from storefront.domain.models import CatalogPage, SearchPage
from storefront.domain.ports import UpstreamFetchError
from storefront.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalogo"])

CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
PageQuery = Annotated[int, Query(ge=1)]
LimitQuery = Annotated[int, Query(ge=1, le=100)]

_FETCH_ERROR = "No se pudieron obtener los productos"


@router.get("/catalogo/{categoria}", response_model=CatalogPage)
async def get_catalog(
    service: CatalogServiceDep,
    categoria: str,
    page: PageQuery = 1,
    limit: LimitQuery = 10,
    color: str | None = None,
    talla: str | None = None,
) -> CatalogPage:
    """
    Artikel einer Kategorie, optional gefiltert nach Farbe und Größe, seitenweise.
    """
    try:
        return await service.get_catalog_page(
            categoria, page=page, limit=limit, color=color, size=talla
        )
    except UpstreamFetchError:
        logger.exception("Failed to build catalog for category %s", categoria)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=_FETCH_ERROR
        )


@router.get("/busqueda/{busqueda}", response_model=SearchPage)
async def search_catalog(
    service: CatalogServiceDep,
    busqueda: str,
    page: PageQuery = 1,
    limit: LimitQuery = 10,
) -> SearchPage:
    try:
        return await service.search(busqueda, page=page, limit=limit)
    except UpstreamFetchError:
        logger.exception("Failed to search catalog for '%s'", busqueda)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=_FETCH_ERROR
        )
