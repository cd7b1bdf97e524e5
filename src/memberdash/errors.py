from __future__ import annotations


class StoreError(Exception):
    def __init__(self, collection: str, message: str) -> None:
        super().__init__(f"{collection}: {message}")
        self.collection = collection


class CollectionNotFound(StoreError):
    """The collection has not been provisioned yet."""

    def __init__(self, collection: str) -> None:
        super().__init__(collection, "collection does not exist")


class StorageFailure(StoreError):
    pass


class InvalidParameter(ValueError):
    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"{name} must be a positive integer, got {value!r}")
        self.name = name
        self.value = value


def require_positive(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidParameter(name, value)
    return value
