"""Tests for FavoritesStore."""

import pytest

from jokestream.client import Joke
from jokestream.favorites import (
    DEFAULT_COLLECTION_ID,
    DEFAULT_COLLECTION_NAME,
    Collection,
    FavoritesStore,
)

JOKE = Joke(id="R7UfaahVfFd", text="It got so bad I had to take his bike away.")
OTHER = Joke(id="M7wPC5wPKBd", text="Did you hear the one about the cat? It was purrfect.")


@pytest.fixture
def store() -> FavoritesStore:
    return FavoritesStore()


class TestCollection:
    """Tests for Collection."""

    def test_generates_id(self):
        """A collection without an id gets a short random one."""
        first = Collection(name="Puns")
        second = Collection(name="Puns")
        assert len(first.id) == 8
        assert first.id != second.id

    def test_keeps_explicit_id(self):
        assert Collection(name="x", id="mine").id == "mine"


class TestFavoritesStore:
    """Tests for FavoritesStore."""

    def test_default_collection(self, store):
        """A new store has only the default collection."""
        assert len(store.collections) == 1
        default = store.get_collection(DEFAULT_COLLECTION_ID)
        assert default.name == DEFAULT_COLLECTION_NAME
        assert default.joke_ids == []

    def test_add_favorite(self, store):
        """Adding a favorite files it in the default collection."""
        assert store.add_favorite(JOKE) is True
        assert store.is_favorite(JOKE.id)
        assert store.get_collection(DEFAULT_COLLECTION_ID).joke_ids == [JOKE.id]

    def test_add_favorite_twice(self, store):
        """A joke can only be favorited once."""
        store.add_favorite(JOKE)
        assert store.add_favorite(JOKE) is False
        assert len(store.favorites) == 1

    def test_add_favorite_unknown_collection(self, store):
        """Unknown collections are rejected without side effects."""
        assert store.add_favorite(JOKE, "missing") is False
        assert not store.is_favorite(JOKE.id)

    def test_remove_favorite_everywhere(self, store):
        """Removing a favorite clears it from every collection."""
        puns = store.create_collection("Puns")
        store.add_favorite(JOKE)
        store.add_favorite(OTHER)
        store.add_joke_to_collection(JOKE.id, puns.id)

        store.remove_favorite(JOKE.id)

        assert not store.is_favorite(JOKE.id)
        assert store.get_collection(DEFAULT_COLLECTION_ID).joke_ids == [OTHER.id]
        assert puns.joke_ids == []

    def test_create_and_delete_collection(self, store):
        puns = store.create_collection("Puns")
        assert store.get_collection(puns.id) is puns

        store.delete_collection(puns.id)

        assert store.get_collection(puns.id) is None

    def test_default_collection_cannot_be_deleted(self, store):
        store.delete_collection(DEFAULT_COLLECTION_ID)
        assert store.get_collection(DEFAULT_COLLECTION_ID) is not None

    def test_add_joke_to_collection_once(self, store):
        """A joke appears in a collection at most once."""
        puns = store.create_collection("Puns")
        store.add_joke_to_collection(JOKE.id, puns.id)
        store.add_joke_to_collection(JOKE.id, puns.id)
        assert puns.joke_ids == [JOKE.id]

    def test_add_joke_to_unknown_collection(self, store):
        """Unknown collection ids are ignored."""
        store.add_joke_to_collection(JOKE.id, "missing")
        assert all(JOKE.id not in c.joke_ids for c in store.collections)

    def test_remove_joke_from_collection(self, store):
        """Removing from one collection keeps the favorite."""
        puns = store.create_collection("Puns")
        store.add_favorite(JOKE, puns.id)

        store.remove_joke_from_collection(JOKE.id, puns.id)

        assert puns.joke_ids == []
        assert store.is_favorite(JOKE.id)

    def test_updates_touch_collection(self, store):
        """Changing a collection bumps updated_at."""
        puns = store.create_collection("Puns")
        before = puns.updated_at
        store.add_joke_to_collection(JOKE.id, puns.id)
        assert puns.updated_at >= before
