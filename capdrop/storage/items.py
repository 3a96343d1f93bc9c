"""
Typed accessors over a store.

Item: one record at a fixed key.
Map:  a keyed collection under a namespace prefix.

The `store` argument is anything with get()/keys() for reads and
set()/remove() for writes: a Storage for queries, a StagedStorage
inside a transaction.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from capdrop.core.exceptions import StorageError

T = TypeVar("T")


class Item(Generic[T]):

    def __init__(self, key: str, model: Type[T]) -> None:
        self.key   = key
        self.model = model

    def may_load(self, store) -> Optional[T]:
        data = store.get(self.key)
        if data is None:
            return None
        return self.model.from_dict(data)

    def load(self, store) -> T:
        value = self.may_load(store)
        if value is None:
            raise StorageError(
                f"{self.model.__name__} not found",
                {"key": self.key},
            )
        return value

    def save(self, store, value: T) -> None:
        store.set(self.key, value.to_dict())


class Map(Generic[T]):

    def __init__(self, namespace: str, model: Type[T]) -> None:
        self.namespace = namespace
        self.model     = model
        self._prefix   = namespace + "/"

    def key(self, k: Any) -> str:
        return f"{self._prefix}{k}"

    def has(self, store, k: Any) -> bool:
        return store.get(self.key(k)) is not None

    def may_load(self, store, k: Any) -> Optional[T]:
        data = store.get(self.key(k))
        if data is None:
            return None
        return self.model.from_dict(data)

    def save(self, store, k: Any, value: T) -> None:
        store.set(self.key(k), value.to_dict())

    def count(self, store) -> int:
        return len(store.keys(self._prefix))

    def range(
        self,
        store,
        start_after: Optional[Any] = None,
        limit:       Optional[int] = None,
    ) -> List[T]:
        """Records in ascending key order, strictly after `start_after`."""
        keys = store.keys(self._prefix)
        if start_after is not None:
            bound = self.key(start_after)
            keys  = [k for k in keys if k > bound]
        if limit is not None:
            keys = keys[:limit]
        return [self.model.from_dict(store.get(k)) for k in keys]
