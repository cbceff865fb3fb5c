"""
ModelSchema: Collaborator Interfaces
=====================================

What:  Abstract contracts for the services that consume generated descriptors.
How:   Concrete implementations inherit and implement the async methods.
       The core never renders or runs SQL itself; quoting, dialect details
       and execution all live behind these interfaces.
Who:   Called by ModelService.

Implementations:
    - SqlAlchemyDDLExecutor / SqlAlchemyQueryExecutor (services/sqlalchemy_executor.py)
    - test doubles in tests/conftest.py
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from modelschema.schemas.descriptors import QueryPlan, TableDescriptor


class DDLExecutor(ABC):
    """Creates tables from descriptors."""

    @abstractmethod
    async def create_table(self, table: TableDescriptor) -> None:
        """
        Render and execute CREATE TABLE for one descriptor.

        Called once per descriptor, base tables before junction tables, so
        every table a foreign key references already exists.

        Raises:
            DatabaseError: the statement could not be executed
        """
        ...


class QueryExecutor(ABC):
    """Reads rows for a resolved query plan."""

    @abstractmethod
    async def fetch(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        """
        Render and execute the SELECT described by `plan`.

        Returns:
            One dict per row, keyed by the select aliases ("title", "author.name")

        Raises:
            DatabaseError: the statement could not be executed
        """
        ...
