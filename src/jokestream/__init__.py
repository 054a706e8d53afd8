"""JokeStream - filtered dad jokes from the icanhazdadjoke API."""

__version__ = "0.1.0"
