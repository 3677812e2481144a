"""Makes and models routers"""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from .. import schemas
from ..catalog import MakeCatalog, ModelCatalog
from ..dependencies import get_makes, get_models
from ..enums import Category
from ..errors import NotFound

logger = logging.getLogger(__name__)

makes_router = APIRouter(prefix="/api/makes", tags=["Makes"])
models_router = APIRouter(prefix="/api/models", tags=["Models"])


@makes_router.get("", response_model=schemas.ApiResponse[List[schemas.Make]])
def read_makes(category: Optional[Category] = None, makes: MakeCatalog = Depends(get_makes)):
    logger.info(f"Fetching makes with category={category}")
    found = makes.find_all(category)
    return schemas.ApiResponse(data=found, count=len(found))


@makes_router.get("/{make_id}", response_model=schemas.ApiResponse[schemas.Make])
def read_make(make_id: UUID, makes: MakeCatalog = Depends(get_makes)):
    make = makes.find_by_id(str(make_id))
    if make is None:
        logger.warning(f"Make {make_id} not found")
        raise NotFound("Make not found")
    return schemas.ApiResponse(data=make)


@makes_router.post("", response_model=schemas.ApiResponse[schemas.Make], status_code=status.HTTP_201_CREATED)
def create_make(make: schemas.MakeCreate, makes: MakeCatalog = Depends(get_makes)):
    logger.info(f"Creating make {make.name} ({make.category.value})")
    created = makes.create(make)
    return schemas.ApiResponse(data=created, message="Make created successfully")


@makes_router.put("/{make_id}", response_model=schemas.ApiResponse[schemas.Make])
def update_make(make_id: UUID, make: schemas.MakeCreate, makes: MakeCatalog = Depends(get_makes)):
    """Rename a make; computers, peripherals or printer items using the old name follow"""
    logger.info(f"Updating make {make_id}")
    updated = makes.update(str(make_id), make)
    return schemas.ApiResponse(data=updated, message="Make updated successfully")


@makes_router.delete("/{make_id}", response_model=schemas.ApiResponse)
def delete_make(make_id: UUID, makes: MakeCatalog = Depends(get_makes)):
    logger.info(f"Deleting make {make_id}")
    if not makes.delete(str(make_id)):
        raise NotFound("Make not found")
    return schemas.ApiResponse(message="Make deleted successfully")


@models_router.get("", response_model=schemas.ApiResponse[List[schemas.Model]])
def read_models(
    category: Optional[Category] = None,
    make_id: Optional[UUID] = None,
    catalog: ModelCatalog = Depends(get_models),
):
    logger.info(f"Fetching models with category={category}, make_id={make_id}")
    found = catalog.find_all(category, str(make_id) if make_id else None)
    return schemas.ApiResponse(data=found, count=len(found))


@models_router.get("/{model_id}", response_model=schemas.ApiResponse[schemas.Model])
def read_model(model_id: UUID, catalog: ModelCatalog = Depends(get_models)):
    model = catalog.find_by_id(str(model_id))
    if model is None:
        logger.warning(f"Model {model_id} not found")
        raise NotFound("Model not found")
    return schemas.ApiResponse(data=model)


@models_router.post("", response_model=schemas.ApiResponse[schemas.Model], status_code=status.HTTP_201_CREATED)
def create_model(model: schemas.ModelCreate, catalog: ModelCatalog = Depends(get_models)):
    logger.info(f"Creating model {model.name} under make {model.make_id}")
    created = catalog.create(model)
    return schemas.ApiResponse(data=created, message="Model created successfully")


@models_router.put("/{model_id}", response_model=schemas.ApiResponse[schemas.Model])
def update_model(model_id: UUID, model: schemas.ModelCreate, catalog: ModelCatalog = Depends(get_models)):
    logger.info(f"Updating model {model_id}")
    updated = catalog.update(str(model_id), model)
    return schemas.ApiResponse(data=updated, message="Model updated successfully")


@models_router.delete("/{model_id}", response_model=schemas.ApiResponse)
def delete_model(model_id: UUID, catalog: ModelCatalog = Depends(get_models)):
    logger.info(f"Deleting model {model_id}")
    if not catalog.delete(str(model_id)):
        raise NotFound("Model not found")
    return schemas.ApiResponse(message="Model deleted successfully")
