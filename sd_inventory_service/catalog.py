"""Reference catalog of canonical make and model names.

Item rows store makes and models as free text, so renaming a catalog entry
rewrites the matching item rows of the entry's category in the same
transaction as the rename itself.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, insert, select, update

from . import models, schemas
from .database import StorageGateway
from .enums import Category, plain
from .errors import CategoryMismatch, ConstraintViolation, DuplicateName, InvalidReference, NotFound
from .items import repository_for

logger = logging.getLogger(__name__)


class MakeCatalog:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway
        self.table = models.Make.__table__

    def find_all(self, category=None) -> List[schemas.Make]:
        query = select(models.Make)
        if category:
            query = query.where(models.Make.category == plain(category))
        query = query.order_by(models.Make.name)
        return [schemas.Make.model_validate(row) for row in self.gateway.fetch_many(query)]

    def find_by_id(self, make_id: str) -> Optional[schemas.Make]:
        row = self.gateway.fetch_one(select(models.Make).where(models.Make.id == make_id))
        return schemas.Make.model_validate(row) if row is not None else None

    def find_by_name(self, name: str, category) -> Optional[schemas.Make]:
        query = select(models.Make).where(models.Make.name == name, models.Make.category == plain(category))
        row = self.gateway.fetch_one(query)
        return schemas.Make.model_validate(row) if row is not None else None

    def has_models(self, make_id: str) -> bool:
        found = self.gateway.fetch_one(select(models.Model.id).where(models.Model.make_id == make_id).limit(1))
        return found is not None

    def create(self, data) -> schemas.Make:
        values = schemas.as_values(data)
        make_id = values.get("id") or models.new_id()
        if self.find_by_name(values["name"], values["category"]) is not None:
            raise DuplicateName(f"Make '{values['name']}' already exists for category {values['category']}")

        statement = insert(self.table).values(id=make_id, name=values["name"], category=values["category"])
        _write(self.gateway, statement, f"Make '{values['name']}' already exists")
        logger.info(f"Created make {make_id} ({values['name']})")
        return self.find_by_id(make_id)

    def update(self, make_id: str, data) -> schemas.Make:
        """Rename or recategorize a make.

        A rename rewrites ``make`` on the item rows of the make's previous
        category; both writes commit or roll back together.
        """
        values = schemas.as_values(data)
        current = self.find_by_id(make_id)
        if current is None:
            raise NotFound("Make not found")

        name = values.get("name", current.name)
        category = Category(values.get("category", current.category))
        if category != current.category and self.has_models(make_id):
            raise CategoryMismatch("Cannot change the category of a make that still has models")
        clash = self.find_by_name(name, category)
        if clash is not None and clash.id != make_id:
            raise DuplicateName(f"Make '{name}' already exists for category {category.value}")

        with self.gateway.transaction():
            statement = update(self.table).where(self.table.c.id == make_id).values(name=name, category=category.value)
            _write(self.gateway, statement, f"Make '{name}' already exists")
            if name != current.name:
                renamed = repository_for(self.gateway, current.category).rename_make(current.name, name)
                logger.info(f"Renamed make '{current.name}' to '{name}' on {renamed} item rows")
        return self.find_by_id(make_id)

    def save(self, data) -> schemas.Make:
        values = schemas.as_values(data)
        if values.get("id") and self.find_by_id(values["id"]) is not None:
            return self.update(values["id"], values)
        return self.create(values)

    def delete(self, make_id: str) -> bool:
        outcome = self.gateway.execute(delete(self.table).where(self.table.c.id == make_id))
        return outcome.rows_affected > 0


class ModelCatalog:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway
        self.table = models.Model.__table__
        self.makes = MakeCatalog(gateway)

    def find_all(self, category=None, make_id: Optional[str] = None) -> List[schemas.Model]:
        query = select(models.Model).join(models.Model.make)
        if category:
            query = query.where(models.Model.category == plain(category))
        if make_id:
            query = query.where(models.Model.make_id == make_id)
        query = query.order_by(models.Make.name, models.Model.name)
        return [schemas.Model.model_validate(row) for row in self.gateway.fetch_many(query)]

    def find_by_id(self, model_id: str) -> Optional[schemas.Model]:
        row = self.gateway.fetch_one(select(models.Model).where(models.Model.id == model_id))
        return schemas.Model.model_validate(row) if row is not None else None

    def find_by_name(self, name: str, make_id: str) -> Optional[schemas.Model]:
        query = select(models.Model).where(models.Model.name == name, models.Model.make_id == make_id)
        row = self.gateway.fetch_one(query)
        return schemas.Model.model_validate(row) if row is not None else None

    def _check_make(self, make_id: str, category: Category):
        make = self.makes.find_by_id(make_id)
        if make is None:
            raise InvalidReference(f"Make {make_id} does not exist")
        if make.category != category:
            raise CategoryMismatch(
                f"Model category '{category.value}' does not match make category '{make.category.value}'"
            )

    def create(self, data) -> schemas.Model:
        values = schemas.as_values(data)
        model_id = values.get("id") or models.new_id()
        category = Category(values["category"])
        self._check_make(values["make_id"], category)
        if self.find_by_name(values["name"], values["make_id"]) is not None:
            raise DuplicateName(f"Model '{values['name']}' already exists for this make")

        statement = insert(self.table).values(
            id=model_id, name=values["name"], make_id=values["make_id"], category=category.value
        )
        _write(self.gateway, statement, f"Model '{values['name']}' already exists for this make")
        logger.info(f"Created model {model_id} ({values['name']})")
        return self.find_by_id(model_id)

    def update(self, model_id: str, data) -> schemas.Model:
        """Rename or move a model; a rename rewrites ``model`` on matching item rows"""
        values = schemas.as_values(data)
        current = self.find_by_id(model_id)
        if current is None:
            raise NotFound("Model not found")

        name = values.get("name", current.name)
        make_id = values.get("make_id", current.make_id)
        category = Category(values.get("category", current.category))
        self._check_make(make_id, category)
        clash = self.find_by_name(name, make_id)
        if clash is not None and clash.id != model_id:
            raise DuplicateName(f"Model '{name}' already exists for this make")

        with self.gateway.transaction():
            statement = (
                update(self.table)
                .where(self.table.c.id == model_id)
                .values(name=name, make_id=make_id, category=category.value)
            )
            _write(self.gateway, statement, f"Model '{name}' already exists for this make")
            if name != current.name:
                renamed = repository_for(self.gateway, current.category).rename_model(current.name, name)
                logger.info(f"Renamed model '{current.name}' to '{name}' on {renamed} item rows")
        return self.find_by_id(model_id)

    def save(self, data) -> schemas.Model:
        values = schemas.as_values(data)
        if values.get("id") and self.find_by_id(values["id"]) is not None:
            return self.update(values["id"], values)
        return self.create(values)

    def delete(self, model_id: str) -> bool:
        outcome = self.gateway.execute(delete(self.table).where(self.table.c.id == model_id))
        return outcome.rows_affected > 0


def _write(gateway: StorageGateway, statement, duplicate_message: str):
    try:
        gateway.execute(statement)
    except ConstraintViolation as exc:
        if exc.kind == "unique":
            raise DuplicateName(duplicate_message) from exc
        raise
