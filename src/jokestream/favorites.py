"""Favorite jokes grouped into named collections."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from jokestream.client import Joke

DEFAULT_COLLECTION_ID = "default"
DEFAULT_COLLECTION_NAME = "All Favorites"


@dataclass
class Collection:
    """A named group of favorite joke IDs."""

    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    joke_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        self.updated_at = datetime.now()


class FavoritesStore:
    """In-memory favorites with a permanent default collection.

    A joke is a favorite once; it can then be listed in any number of
    collections. Removing a favorite removes it from every collection.
    """

    def __init__(self):
        self.favorites: list[Joke] = []
        self.collections: list[Collection] = [
            Collection(id=DEFAULT_COLLECTION_ID, name=DEFAULT_COLLECTION_NAME)
        ]

    def get_collection(self, collection_id: str) -> Collection | None:
        for collection in self.collections:
            if collection.id == collection_id:
                return collection
        return None

    def is_favorite(self, joke_id: str) -> bool:
        return any(fav.id == joke_id for fav in self.favorites)

    def add_favorite(self, joke: Joke, collection_id: str = DEFAULT_COLLECTION_ID) -> bool:
        """Favorite a joke into a collection.

        Returns:
            False (and changes nothing) if the joke is already a favorite or
            the collection does not exist.
        """
        collection = self.get_collection(collection_id)
        if self.is_favorite(joke.id) or collection is None:
            return False

        self.favorites.append(joke)
        collection.joke_ids.append(joke.id)
        collection.touch()
        return True

    def remove_favorite(self, joke_id: str) -> None:
        self.favorites = [fav for fav in self.favorites if fav.id != joke_id]
        for collection in self.collections:
            collection.joke_ids = [jid for jid in collection.joke_ids if jid != joke_id]
            collection.touch()

    def create_collection(self, name: str) -> Collection:
        collection = Collection(name=name)
        self.collections.append(collection)
        return collection

    def delete_collection(self, collection_id: str) -> None:
        """Delete a collection; the default collection cannot be deleted."""
        if collection_id == DEFAULT_COLLECTION_ID:
            return
        self.collections = [c for c in self.collections if c.id != collection_id]

    def add_joke_to_collection(self, joke_id: str, collection_id: str) -> None:
        collection = self.get_collection(collection_id)
        if collection is not None and joke_id not in collection.joke_ids:
            collection.joke_ids.append(joke_id)
            collection.touch()

    def remove_joke_from_collection(self, joke_id: str, collection_id: str) -> None:
        collection = self.get_collection(collection_id)
        if collection is not None:
            collection.joke_ids = [jid for jid in collection.joke_ids if jid != joke_id]
            collection.touch()
