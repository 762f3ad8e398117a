"""
Exceptions raised by the tree-backed dictionary.
"""


class KeyNotFound(KeyError):
    """Raised by read-only lookups when the key is not in the dictionary."""

    def __init__(self, key):
        super().__init__(key)
        self.key = key

    def __str__(self):
        return f"Not in dictionary: {self.key!r}"
