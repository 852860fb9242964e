from typing import Any, Callable, Dict, Hashable, List, Type, Union

import structlog

from tablemapper.entity.entity import Entity
from tablemapper.exceptions import UnknownRepository
from tablemapper.repository.repository import Repository

logger = structlog.get_logger()

Factory = Callable[["RepositoryRegistry"], Repository]


class RepositoryRegistry:
    """
    Maps repository identifiers to factories and caches the built repositories.

    Identifiers are strings or enum members. Each repository is constructed
    on first lookup with this registry's database and then reused, so
    relations between repositories resolve through the same registry.

        registry = RepositoryRegistry(Database())
        registry.register("posts", PostRepository)
        registry.register_table("tags", "tags", Tag, order="name")
        posts = registry.get("posts")
    """

    def __init__(self, database=None):
        self.database = database
        self._factories: Dict[Hashable, Factory] = {}
        self._instances: Dict[Hashable, Repository] = {}

    def register(self, name: Hashable, factory: Union[Type[Repository], Factory]) -> None:
        """
        Register a Repository subclass or a factory callable taking the registry.

        Re-registering a name replaces its factory and drops any cached instance.
        """
        if isinstance(factory, type) and issubclass(factory, Repository):
            repository_class = factory
            factory = lambda registry: repository_class(database=registry.database, registry=registry)  # noqa: E731
        elif not callable(factory):
            raise TypeError(f"Repository factory for {name!r} must be callable")

        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.debug("repository_registered", name=str(name))

    def register_table(
        self,
        name: Hashable,
        table: Any,
        entity_class: Type[Entity],
        where=None,
        order=None,
    ) -> None:
        """Register a generic repository for a table and entity type."""

        def factory(registry: "RepositoryRegistry") -> Repository:
            return Repository(
                database=registry.database,
                registry=registry,
                table=table,
                entity_class=entity_class,
                where=where,
                order=order,
            )

        self.register(name, factory)

    def get(self, name: Hashable) -> Repository:
        if name not in self._instances:
            try:
                factory = self._factories[name]
            except KeyError:
                raise UnknownRepository(name) from None
            self._instances[name] = factory(self)
        return self._instances[name]

    def names(self) -> List[Hashable]:
        return list(self._factories)

    def __contains__(self, name: Hashable) -> bool:
        return name in self._factories
