import logging
from typing import ClassVar

from recordmodel.config import get_settings
from recordmodel.database.protocols import Filter, Store
from recordmodel.engine.persistence import ModelDefinition, PersistenceEngine
from recordmodel.exceptions.base import DoesExist

logger = logging.getLogger(__name__)


class NoneModel:
    """Asserts that no record of a collection matches a filter."""

    definition: ClassVar[ModelDefinition]

    def __init__(self, store: Store):
        self._engine = PersistenceEngine(self.definition, store)
        self._load_limit = get_settings().LOAD_ONE_LIMIT

    def __repr__(self) -> str:
        return f"{type(self).__name__}(collection={self.definition.collection!r})"

    async def load_none(self, filter: Filter) -> "NoneModel":
        """
        Raises:
            DoesExist: If at least one record matches `filter`.
        """
        records = await self._engine.load(self._engine.collection.find(filter, self._load_limit))
        if records:
            logger.info("model.load_none.does_exist", extra={"collection": self.definition.collection})
            raise DoesExist(collection=self.definition.collection, context=filter)
        return self
